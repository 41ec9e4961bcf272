import pytest
import os
import sys
import uuid
from typing import Callable, List, Optional

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from agent_memories.errors import TransportError
from agent_memories.models import Memory
from agent_memories.search.base import ContentChunk, ReindexResponse, SearchHit, SearchProvider, SearchRequest
from agent_memories.services.context import MemoryContext
from agent_memories.services.memory_service import MemoryService
from agent_memories.storage.memory import MemoryBlobStore


class StubSearchProvider(SearchProvider):
    """
    Search provider double.

    Returns canned hits, records every request, and answers reindex
    requests with a configurable response or error.
    """

    def __init__(
        self,
        hits: Optional[List[SearchHit]] = None,
        reindex: Optional[ReindexResponse] = None,
        reindex_error: Optional[Exception] = None
    ):
        self.hits = list(hits or [])
        self.reindex_response = reindex or ReindexResponse(accepted=True, job_id="job-1")
        self.reindex_error = reindex_error
        self.search_requests: List[SearchRequest] = []
        self.reindex_calls = 0
        self.closed = False

    async def search(self, request: SearchRequest) -> List[SearchHit]:
        self.search_requests.append(request)
        return list(self.hits)

    async def request_reindex(self) -> ReindexResponse:
        self.reindex_calls += 1
        if self.reindex_error is not None:
            raise self.reindex_error
        return self.reindex_response

    async def close(self) -> None:
        self.closed = True


def hit_for(memory: Memory, score: float) -> SearchHit:
    """A provider hit whose text is the memory's stored JSON."""
    return SearchHit(
        file_id=f"memories/{memory.id}.json",
        score=score,
        content=[ContentChunk(type="text", text=memory.to_json())],
        filename=f"memories/{memory.id}.json",
    )


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def search_provider():
    return StubSearchProvider()


@pytest.fixture
def memory_context(blob_store, search_provider):
    return MemoryContext.build(blob_store, search_provider)


@pytest.fixture
def memory_service(memory_context):
    return MemoryService(memory_context)


@pytest.fixture
def unique_content() -> Callable[[str], str]:
    """
    Generate unique test content.

    Usage:
        def test_example(unique_content):
            content = unique_content("Test memory about authentication")
    """
    def _generator(base: str = "test") -> str:
        return f"{base} [{uuid.uuid4()}]"
    return _generator


@pytest.fixture
def transport_failure():
    return TransportError("AI Search request to jobs failed: ConnectError: connection refused")


@pytest.fixture
def make_provider() -> Callable[..., StubSearchProvider]:
    """Factory for StubSearchProvider with custom hits or reindex behavior."""
    return StubSearchProvider


@pytest.fixture
def memory_hit() -> Callable[[Memory, float], SearchHit]:
    return hit_for
