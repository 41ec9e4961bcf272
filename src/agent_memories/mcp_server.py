#!/usr/bin/env python3
"""
MCP server for Agent Memories.

Exposes the memory service to agent runtimes as MCP tools. The server runs
standalone (stdio or streamable HTTP) or mounted inside the REST app at
/mcp, where it shares the app's MemoryContext and bearer-token check.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from . import __version__
from .errors import ValidationError
from .models import ScoredMemory
from .services.context import MemoryContext, create_memory_context
from .services.memory_service import MemoryService, resync_response

logger = logging.getLogger(__name__)

SERVER_NAME = "agent-memories"

# Shared with the REST app when mounted; created on first use when standalone
_MEMORY_CONTEXT: Optional[MemoryContext] = None
_CONTEXT_LOCK: Optional[asyncio.Lock] = None


def set_memory_context(context: Optional[MemoryContext]) -> None:
    """Install the process-wide MemoryContext used by tool calls."""
    global _MEMORY_CONTEXT
    _MEMORY_CONTEXT = context


def _get_context_lock() -> asyncio.Lock:
    """Get or create the context lock (lazy initialization to avoid event loop issues)."""
    global _CONTEXT_LOCK
    if _CONTEXT_LOCK is None:
        _CONTEXT_LOCK = asyncio.Lock()
    return _CONTEXT_LOCK


@dataclass
class MCPServerContext:
    """Lifespan context available to every tool call."""
    memory_service: MemoryService


@asynccontextmanager
async def mcp_server_lifespan(server: FastMCP) -> AsyncIterator[MCPServerContext]:
    """
    Provide a MemoryService to tool calls.

    In stateless HTTP mode this runs per request, so the MemoryContext is
    built once and reused; it is closed by whoever installed it.
    """
    global _MEMORY_CONTEXT

    async with _get_context_lock():
        if _MEMORY_CONTEXT is None:
            logger.info("No memory context installed, creating one from configuration")
            _MEMORY_CONTEXT = await create_memory_context()

    yield MCPServerContext(memory_service=MemoryService(_MEMORY_CONTEXT))


def _service(ctx: Context) -> MemoryService:
    return ctx.request_context.lifespan_context.memory_service


def format_search_results(memories: List[ScoredMemory]) -> str:
    """Render search results as the numbered text list agents read."""
    if not memories:
        return "No memories found matching the query."

    lines = []
    for i, scored in enumerate(memories, start=1):
        memory = scored.memory
        tags = f" [{', '.join(memory.tags)}]" if memory.tags else ""
        lines.append(f"{i}. {memory.content}{tags} (relevance: {scored.score * 100:.1f}%)")

    return f"Found {len(memories)} relevant memories:\n\n" + "\n".join(lines)


async def save_memory(
    content: str,
    ctx: Context,
    tags: Union[str, List[str], None] = None,
    source: str = "user"
) -> str:
    """Save a memory for future reference.

USE THIS WHEN:
- The user explicitly asks to remember something ("Remember that...")
- The user states a strong preference with words like "ALWAYS", "NEVER", "I prefer..."

Examples:
- "Remember that I prefer TypeScript over JavaScript"
- "Always use tabs for indentation in my projects"
- "Never use semicolons in my code"

ARGS:
- content: The memory text to save
- tags: Optional tags, e.g. ["coding-style", "preferences"]
- source: "user" if the user asked for it, "auto" if you inferred it

RETURNS:
- Confirmation text with the new memory ID
    """
    try:
        memory = await _service(ctx).create(content, tags=tags, source=source)
    except ValidationError as e:
        raise ToolError(f"Error: {e}") from e
    return f"Memory saved successfully with ID: {memory.id}"


async def search_memories(
    query: str,
    ctx: Context,
    limit: int = 5
) -> str:
    """Search for relevant memories by meaning.

USE THIS WHEN:
- Starting a session, to load the user's established preferences
- Before making decisions about coding style, architecture, or tooling

Newly saved memories become searchable once the index has been rebuilt,
which can take a short while.

ARGS:
- query: What to look for, e.g. "indentation preferences"
- limit: Maximum number of results (default 5, at most 50)

RETURNS:
- Numbered list of memories with tags and relevance percentage
    """
    try:
        memories = await _service(ctx).search(query, limit=limit)
    except ValidationError as e:
        raise ToolError(f"Error: {e}") from e
    return format_search_results(memories)


async def list_memories(
    ctx: Context,
    cursor: Optional[str] = None,
    limit: int = 20
) -> Dict[str, Any]:
    """List stored memories page by page, in storage order.

ARGS:
- cursor: Cursor from the previous page; omit for the first page
- limit: Page size (default 20)

RETURNS:
- memories: Array of memories (id, content, tags, source, createdAt)
- cursor: Cursor for the next page, null when there are no more
    """
    try:
        page = await _service(ctx).list(cursor=cursor, limit=limit)
    except ValidationError as e:
        raise ToolError(f"Error: {e}") from e
    return page.to_dict()


async def get_memory(
    id: str,
    ctx: Context
) -> Dict[str, Any]:
    """Fetch a single memory by its ID.

RETURNS:
- memory: The memory (id, content, tags, source, createdAt), or null if it does not exist
    """
    try:
        memory = await _service(ctx).get(id)
    except ValidationError as e:
        raise ToolError(f"Error: {e}") from e
    return {"memory": memory.to_dict() if memory else None}


async def delete_memory(
    id: str,
    ctx: Context
) -> Dict[str, Any]:
    """Permanently delete a memory by its ID.

Deleting an ID that does not exist also succeeds. The memory disappears from
search results once the index has been rebuilt; the returned resync field
says whether the rebuild was accepted.

RETURNS:
- success: true
- resync: {"jobId": ...} when reindexing was accepted, {"error": ...} otherwise
    """
    try:
        result = await _service(ctx).delete(id)
    except ValidationError as e:
        raise ToolError(f"Error: {e}") from e
    return result.to_dict()


async def resync_memories(ctx: Context) -> Dict[str, Any]:
    """Ask the search index to rebuild over all stored memories.

RETURNS:
- success and jobId when the reindex job was queued
- error when the provider declined
    """
    outcome = await _service(ctx).resync()
    return resync_response(outcome)


TOOLS = (
    save_memory,
    search_memories,
    list_memories,
    get_memory,
    delete_memory,
    resync_memories,
)


def create_mcp_server() -> FastMCP:
    """
    Build a FastMCP server with every memory tool registered.

    Each call returns an independent server, so each web app that mounts one
    gets its own streamable HTTP session manager.
    """
    server = FastMCP(
        name=SERVER_NAME,
        lifespan=mcp_server_lifespan,
        stateless_http=True,
        streamable_http_path="/",
    )
    for tool in TOOLS:
        server.tool()(tool)
    return server


# Server used by the standalone entry point
mcp = create_mcp_server()


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(transport: str = "stdio", host: str = "127.0.0.1", port: int = 8000):
    """Run the MCP server standalone."""
    from .logging_config import configure_logging

    configure_logging(transport=transport)
    logger.info(f"Starting {SERVER_NAME} MCP server v{__version__} ({transport})")

    if transport != "stdio":
        mcp.settings.host = host
        mcp.settings.port = port
        mcp.settings.streamable_http_path = "/mcp"
    mcp.run(transport)


if __name__ == "__main__":
    main()
