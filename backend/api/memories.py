"""
Memories API - command surface for the desktop front end.

Handlers are plain `def` functions: FastAPI runs them in its threadpool, so
the blocking store calls happen directly, one worker per request.
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, HTTPException, Query

from runtime_state import ChangeEvent, runtime_state
from store import (
    InvalidMemoryIdError,
    MemoryDetail,
    MemoryNotFoundError,
    MemorySearchResult,
    MemoryStoreError,
    MemorySummary,
    SaveMemoryPayload,
    get_memory_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memories", tags=["memories"])

# Kept off /api/memories so "search" stays a loadable memory id.
search_router = APIRouter(prefix="/api", tags=["memories"])


def _raise_store_error(operation: str, exc: MemoryStoreError) -> NoReturn:
    if isinstance(exc, MemoryNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidMemoryIdError):
        raise HTTPException(status_code=400, detail=str(exc))
    logger.warning("%s failed: %s", operation, exc)
    raise HTTPException(status_code=500, detail=str(exc))


@router.get("", response_model=List[MemorySummary])
def list_memories(
    limit: Optional[int] = Query(None, ge=1, description="Only the N most recent memories"),
):
    """Summaries of all memories, most recently updated first."""
    try:
        return get_memory_store().list(limit=limit)
    except MemoryStoreError as e:
        _raise_store_error("list_memories", e)


@search_router.get("/search", response_model=List[MemorySearchResult])
def search_memories(q: str = Query("", description="Case-insensitive keyword")):
    try:
        return get_memory_store().search(q)
    except MemoryStoreError as e:
        _raise_store_error("search_memories", e)


@router.get("/{memory_id}", response_model=MemoryDetail)
def load_memory(memory_id: str):
    try:
        return get_memory_store().load(memory_id)
    except MemoryStoreError as e:
        _raise_store_error("load_memory", e)


@router.post("", response_model=MemoryDetail)
def save_memory(payload: SaveMemoryPayload):
    """
    Create (no id) or overwrite (with id) a memory.

    The change event goes out only after the file is written.
    """
    try:
        detail = get_memory_store().save(payload)
    except MemoryStoreError as e:
        _raise_store_error("save_memory", e)
    runtime_state.emit_change(ChangeEvent.saved(detail.id))
    return detail


@router.delete("/{memory_id}")
def delete_memory(memory_id: str):
    try:
        get_memory_store().delete(memory_id)
    except MemoryStoreError as e:
        _raise_store_error("delete_memory", e)
    runtime_state.emit_change(ChangeEvent.deleted(memory_id))
    return {"status": "deleted", "id": memory_id}
