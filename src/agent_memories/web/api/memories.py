# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Memory CRUD, search and resync endpoints for the HTTP interface.
"""

import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_LIST_LIMIT
from ...models import Memory, ScoredMemory
from ...services.index_sync import ResyncAccepted
from ...services.memory_service import MemoryService, resync_response
from ..dependencies import get_memory_service

router = APIRouter()
logger = logging.getLogger(__name__)


# Request/Response Models
class MemoryCreateRequest(BaseModel):
    """Request model for creating a new memory."""
    content: Optional[str] = Field(None, description="The memory content to save")
    tags: Union[List[str], str, None] = Field(None, description="Tags to categorize the memory")
    source: Optional[str] = Field("user", description="'user' if explicitly requested, 'auto' if inferred")


class MemoryResponse(BaseModel):
    """Response model for memory data."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    content: str
    tags: List[str]
    source: str
    created_at: str = Field(..., alias="createdAt")


class ScoredMemoryResponse(MemoryResponse):
    """A search result: memory fields plus the provider's relevance score."""
    score: float


class MemoryCreateResponse(BaseModel):
    success: bool
    memory: MemoryResponse


class MemoryGetResponse(BaseModel):
    memory: MemoryResponse


class MemorySearchResponse(BaseModel):
    memories: List[ScoredMemoryResponse]


class MemoryListResponse(BaseModel):
    """Response model for one page of memories."""
    memories: List[MemoryResponse]
    cursor: Optional[str] = Field(None, description="Cursor of the next page, null when exhausted")


class MemoryDeleteResponse(BaseModel):
    success: bool
    resync: Dict[str, Optional[str]] = Field(..., description="{jobId} when reindexing was accepted, {error} otherwise")


class ResyncResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    job_id: Optional[str] = Field(None, alias="jobId")


def memory_to_response(memory: Memory) -> MemoryResponse:
    """Convert Memory model to response format."""
    return MemoryResponse(**memory.to_dict())


def scored_to_response(scored: ScoredMemory) -> ScoredMemoryResponse:
    return ScoredMemoryResponse(**scored.to_dict())


@router.post("/memories", response_model=MemoryCreateResponse, tags=["memories"])
async def save_memory(
    request: MemoryCreateRequest,
    memory_service: MemoryService = Depends(get_memory_service)
):
    """
    Save a new memory.

    The memory is durable when this returns. A resync is requested
    afterwards; its outcome does not affect the response.
    """
    memory = await memory_service.create(
        content=request.content,
        tags=request.tags,
        source=request.source
    )
    return MemoryCreateResponse(success=True, memory=memory_to_response(memory))


@router.get("/memories/search", response_model=MemorySearchResponse, tags=["search"])
async def search_memories(
    q: Optional[str] = Query(None, description="Search query"),
    limit: Optional[int] = Query(None, description="Maximum number of results (default 5, max 50)"),
    memory_service: MemoryService = Depends(get_memory_service)
):
    """Semantic search over stored memories."""
    if not q:
        return JSONResponse(status_code=400, content={"error": "Query parameter q is required"})
    results = await memory_service.search(q, limit=limit)
    return MemorySearchResponse(memories=[scored_to_response(scored) for scored in results])


@router.post("/memories/resync", response_model=ResyncResponse, tags=["sync"])
async def trigger_resync(memory_service: MemoryService = Depends(get_memory_service)):
    """Manually request a reindex of all stored memories."""
    outcome = await memory_service.resync()
    payload = resync_response(outcome)
    if not isinstance(outcome, ResyncAccepted):
        return JSONResponse(status_code=500, content=payload)
    return ResyncResponse(**payload)


@router.get("/memories", response_model=MemoryListResponse, tags=["memories"])
async def list_memories(
    cursor: Optional[str] = Query(None, description="Cursor from the previous page"),
    limit: int = Query(DEFAULT_LIST_LIMIT, description="Page size"),
    memory_service: MemoryService = Depends(get_memory_service)
):
    """List memories page by page, in storage order."""
    page = await memory_service.list(cursor=cursor, limit=limit)
    return MemoryListResponse(
        memories=[memory_to_response(memory) for memory in page.memories],
        cursor=page.cursor
    )


@router.get("/memories/{memory_id}", response_model=MemoryGetResponse, tags=["memories"])
async def get_memory(
    memory_id: str,
    memory_service: MemoryService = Depends(get_memory_service)
):
    """Fetch a single memory by id."""
    memory = await memory_service.get(memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail=f"Memory {memory_id} not found")
    return MemoryGetResponse(memory=memory_to_response(memory))


@router.delete(
    "/memories/{memory_id}",
    response_model=MemoryDeleteResponse,
    tags=["memories"]
)
async def delete_memory(
    memory_id: str,
    memory_service: MemoryService = Depends(get_memory_service)
):
    """
    Delete a memory by id.

    Succeeds for ids that do not exist. The resync field reports whether the
    search index rebuild was accepted ({"jobId"}) or not ({"error"}).
    """
    result = await memory_service.delete(memory_id)
    return MemoryDeleteResponse(**result.to_dict())
