"""
Services package for Agent Memories.

This package contains shared business logic services that provide
consistent behavior across different interfaces (REST API, MCP tools).
"""

from .context import MemoryContext, create_memory_context
from .index_sync import IndexSyncController, ResyncAccepted, ResyncOutcome, ResyncRejected
from .memory_service import DeleteResult, MemoryService

__all__ = [
    "MemoryContext",
    "create_memory_context",
    "IndexSyncController",
    "ResyncAccepted",
    "ResyncOutcome",
    "ResyncRejected",
    "DeleteResult",
    "MemoryService",
]
