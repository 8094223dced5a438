"""
MCP Server for Wikimem

This module exposes the memory store to tool-calling agents over the Model
Context Protocol. The same FastMCP instance serves two bindings:
- stdio, when this file is run directly
- streamable HTTP, mounted at /mcp by main.py

Every tool is async and pushes the blocking store call onto a worker thread
so concurrent tool calls keep the event loop responsive.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from config import load_settings, setup_logging
from runtime_state import ChangeEvent, runtime_state
from store import MemoryStore, MemoryStoreError, SaveMemoryPayload, get_memory_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERVER_INSTRUCTIONS = (
    "Wikimem exposes memory CRUD tools (`list_memories`, `load_memory`, "
    "`save_memory`, `delete_memory`, `search_memories`). Use `save_memory` to "
    "write Markdown: linking to another memory can be done with wiki-style "
    "syntax like [[memory_id]]."
)

# Initialize FastMCP server
mcp = FastMCP("wikimem", instructions=SERVER_INSTRUCTIONS)


async def _run_store(operation: str, call: Callable[[MemoryStore], T]) -> T:
    """
    Run a blocking store call off the event loop, mapping failures to tool errors.

    The store lookup happens on the worker thread too: the first call resolves
    settings and creates the data directory.
    """
    try:
        return await asyncio.to_thread(lambda: call(get_memory_store()))
    except MemoryStoreError as e:
        logger.info("%s failed: %s", operation, e)
        raise ToolError(str(e)) from e


# =============================================================================
# Tools
# =============================================================================


@mcp.tool()
async def list_memories(limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Return summaries of all stored memories ordered by recency.

    Args:
        limit: Only return the N most recently updated memories.
    """
    if limit is not None and limit < 1:
        raise ToolError("limit must be >= 1.")
    summaries = await _run_store("list_memories", lambda store: store.list(limit=limit))
    return {"memories": [item.model_dump() for item in summaries]}


@mcp.tool()
async def load_memory(id: str) -> Dict[str, Any]:
    """Load a memory by id, returning the full markdown body."""
    detail = await _run_store("load_memory", lambda store: store.load(id))
    return detail.model_dump()


@mcp.tool()
async def save_memory(title: str, body: str, id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create or update a memory using the provided title and markdown body.
    Use wiki links like [[memory_id]] to reference other memories.

    Args:
        title: Title used for the id and for empty bodies.
        body: Full Markdown content. A leading "# Heading" becomes the title.
        id: Existing memory id to overwrite. Omit to create a new memory.
    """
    payload = SaveMemoryPayload(id=id, title=title, body=body)
    detail = await _run_store("save_memory", lambda store: store.save(payload))
    runtime_state.emit_change(ChangeEvent.saved(detail.id))
    return detail.model_dump()


@mcp.tool()
async def delete_memory(id: str) -> Dict[str, Any]:
    """Delete a memory by id. Deleting an unknown id is not an error."""
    await _run_store("delete_memory", lambda store: store.delete(id))
    runtime_state.emit_change(ChangeEvent.deleted(id))
    return {"status": "deleted", "id": id}


@mcp.tool()
async def search_memories(query: str) -> Dict[str, Any]:
    """Search memories by keyword across titles and body content."""
    results = await _run_store("search_memories", lambda store: store.search(query))
    return {"results": [item.model_dump() for item in results]}


# =============================================================================
# Startup
# =============================================================================


def main() -> None:
    """Run the MCP server over stdio."""
    settings = load_settings()
    setup_logging(settings.log_level)

    # Fail fast on an unusable data directory before the client handshakes.
    store = get_memory_store()
    logger.info("Wikimem MCP (stdio) serving %s", store.base_dir)
    mcp.run()


if __name__ == "__main__":
    main()
