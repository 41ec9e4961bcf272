"""
Memory Service - Shared business logic for memory operations.

Both the REST API and the MCP tools call into this service, so the two
surfaces validate, store, resync and search the same way.

Durability is the strong guarantee here: a memory exists once the blob
store write succeeds. Searchability is eventual; every mutation requests a
resync, but only delete reports its outcome to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..config import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ..errors import TransportError, ValidationError
from ..models import Memory, MemoryPage, MemorySource, ScoredMemory
from .context import MemoryContext
from .index_sync import ResyncAccepted, ResyncOutcome, ResyncRejected

logger = logging.getLogger(__name__)


def normalize_tags(tags: Union[str, List[str], None]) -> List[str]:
    """
    Normalize tags to a list.

    Handles all input formats:
    - None → []
    - "tag1,tag2,tag3" → ["tag1", "tag2", "tag3"]
    - "single-tag" → ["single-tag"]
    - ["tag1", "tag2"] → ["tag1", "tag2"]

    Raises:
        ValidationError: If tags is neither a string nor a list of strings
    """
    if tags is None:
        return []

    if isinstance(tags, str):
        if not tags.strip():
            return []
        return [tag.strip() for tag in tags.split(',') if tag.strip()]

    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationError("tags must be a list of strings", field="tags")
    return list(tags)


def resync_summary(outcome: ResyncOutcome) -> Dict[str, Any]:
    """Compact form used in delete responses: {"jobId": ...} or {"error": ...}."""
    if isinstance(outcome, ResyncAccepted):
        return {"jobId": outcome.job_id}
    return {"error": outcome.reason}


def resync_response(outcome: ResyncOutcome) -> Dict[str, Any]:
    """Payload of a manual resync: {"success": true, "jobId": ...} or {"error": ...}."""
    if isinstance(outcome, ResyncAccepted):
        return {"success": True, "jobId": outcome.job_id}
    return {"error": outcome.reason}


@dataclass(frozen=True)
class DeleteResult:
    """Result of a delete. The delete itself always succeeded if this exists."""
    id: str
    resync: ResyncOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "resync": resync_summary(self.resync)}


class MemoryService:
    """
    Shared service for memory operations.

    Stateless between calls: everything it touches lives in the injected
    MemoryContext.
    """

    def __init__(self, context: MemoryContext):
        self.context = context

    async def create(
        self,
        content: Any,
        tags: Union[str, List[str], None] = None,
        source: Union[str, MemorySource, None] = MemorySource.USER
    ) -> Memory:
        """
        Store a new memory and request a resync.

        Args:
            content: Memory text, must be a non-empty string
            tags: Optional tags (list or comma-separated string)
            source: "user" (default) or "auto"

        Returns:
            The stored memory with its generated id and createdAt

        Raises:
            ValidationError: If content, tags or source are invalid
            StoreError: If the blob store write fails
        """
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content is required and must be a string", field="content")
        final_tags = normalize_tags(tags)
        try:
            final_source = MemorySource(source or MemorySource.USER)
        except ValueError:
            raise ValidationError("source must be 'user' or 'auto'", field="source") from None

        memory = Memory.new(content, tags=final_tags, source=final_source)
        await self.context.records.put(memory)
        logger.info(f"Created memory {memory.id} ({len(final_tags)} tags, source={final_source.value})")

        # Best effort: the memory is already durable
        try:
            await self.context.sync.trigger_resync("create")
        except TransportError as e:
            logger.warning(f"Resync after create of {memory.id} could not be requested: {e}")
            self.context.sync.notify("create", ResyncRejected(reason=str(e)))

        return memory

    async def get(self, memory_id: str) -> Optional[Memory]:
        """Fetch a memory by id, or None if it does not exist."""
        if not isinstance(memory_id, str) or not memory_id.strip():
            raise ValidationError("id is required", field="id")
        return await self.context.records.get(memory_id)

    async def search(self, query: Any, limit: Optional[int] = None) -> List[ScoredMemory]:
        """
        Semantic search through the provider.

        Args:
            query: Free-text query, must be a non-empty string
            limit: Maximum results; defaults to 5 and is capped at 50

        Raises:
            ValidationError: If query is missing or empty
            TransportError: If the provider could not be reached
            SearchProviderError: If the provider reported a failed search
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query is required", field="query")

        normalizer = self.context.normalizer
        request = normalizer.build_request(query, limit)
        hits = await self.context.search_provider.search(request)
        results = normalizer.scored_memories(hits)
        logger.debug(f"Search {query!r} returned {len(results)} memories")
        return results

    async def list(self, cursor: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT) -> MemoryPage:
        """
        List one page of memories in store order.

        Raises:
            ValidationError: If limit is outside 1..MAX_LIST_LIMIT
            StoreError: If the listing fails or the cursor is invalid
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}", field="limit")
        return await self.context.records.list(cursor=cursor or None, limit=limit)

    async def delete(self, memory_id: str) -> DeleteResult:
        """
        Delete a memory and request a resync.

        Deleting an id that does not exist succeeds. The resync outcome is
        returned because the memory only disappears from search once the
        provider reindexes.

        Raises:
            ValidationError: If memory_id is empty
            StoreError: If the blob store delete fails
            TransportError: If the resync request could not be sent
        """
        if not isinstance(memory_id, str) or not memory_id.strip():
            raise ValidationError("id is required", field="id")

        await self.context.records.delete(memory_id)
        logger.info(f"Deleted memory {memory_id}")

        outcome = await self.context.sync.trigger_resync("delete")
        return DeleteResult(id=memory_id, resync=outcome)

    async def resync(self) -> ResyncOutcome:
        """Manually request a reindex of the whole store."""
        return await self.context.sync.trigger_resync("manual")
