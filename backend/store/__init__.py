from typing import Optional

from config import load_settings

from .memory_store import (
    ConfigurationError,
    InvalidMemoryIdError,
    MemoryDetail,
    MemoryNotFoundError,
    MemoryStore,
    MemoryStoreError,
    MemorySearchResult,
    MemorySummary,
    SaveMemoryPayload,
)

__all__ = [
    "ConfigurationError",
    "InvalidMemoryIdError",
    "MemoryDetail",
    "MemoryNotFoundError",
    "MemoryStore",
    "MemoryStoreError",
    "MemorySearchResult",
    "MemorySummary",
    "SaveMemoryPayload",
    "close_memory_store",
    "get_memory_store",
]


# =============================================================================
# Global Singleton
# =============================================================================

_memory_store: Optional[MemoryStore] = None


def get_memory_store() -> MemoryStore:
    """Get the process-wide MemoryStore shared by every adapter."""
    global _memory_store
    if _memory_store is None:
        settings = load_settings()
        try:
            base_dir = settings.memories_dir()
        except Exception as exc:
            raise ConfigurationError(f"App data directory not available: {exc}") from exc
        _memory_store = MemoryStore(base_dir, id_strategy=settings.id_strategy)
    return _memory_store


def close_memory_store() -> None:
    """Drop the shared handle; the next get_memory_store() re-reads settings."""
    global _memory_store
    _memory_store = None
