"""
File-backed Memory Store for Wikimem.

One Markdown file per memory, named `<id>.md`, in a single base directory.
The filesystem is the only source of truth:
- no in-memory cache, every call re-reads the directory
- no locks, last writer wins
- titles are derived from the body, timestamps from the file mtime

All operations are synchronous and block on file I/O. Async callers must
dispatch them off the event loop (see mcp_server.py).
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel

from .codec import canonical_body, ellipsize, extract_snippet, extract_title, resolve_title
from .ids import (
    MEMORY_SUFFIX,
    is_valid_memory_id,
    memory_file,
    slugify,
    timestamp_id,
    uniquify,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Projections
# =============================================================================


class MemorySummary(BaseModel):
    id: str
    title: str
    updated_at: int


class MemoryDetail(BaseModel):
    id: str
    title: str
    body: str
    updated_at: int


class MemorySearchResult(BaseModel):
    id: str
    title: str
    snippet: str
    updated_at: int


class SaveMemoryPayload(BaseModel):
    id: Optional[str] = None
    title: str = ""
    body: str = ""


# =============================================================================
# Errors
# =============================================================================


class MemoryStoreError(Exception):
    """A filesystem operation failed; str(exc) carries the OS message."""


class MemoryNotFoundError(MemoryStoreError):
    pass


class InvalidMemoryIdError(MemoryStoreError):
    pass


class ConfigurationError(MemoryStoreError):
    pass


# =============================================================================
# Store
# =============================================================================


def _read_body(path: Path) -> str:
    # newline="" keeps "\r\n" intact so a body round-trips byte for byte.
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def _updated_at(path: Path) -> int:
    return int(path.stat().st_mtime)


class MemoryStore:
    """Read/write access to one directory of Markdown memories."""

    def __init__(self, base_dir: Path, *, id_strategy: str = "slug") -> None:
        self.base_dir = Path(base_dir)
        self.id_strategy = id_strategy
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(
                f"Memories directory unavailable ({self.base_dir}): {exc}"
            ) from exc

    def _file(self, memory_id: str) -> Path:
        if not is_valid_memory_id(memory_id):
            raise InvalidMemoryIdError(f"Invalid memory id: {memory_id!r}")
        return memory_file(self.base_dir, memory_id)

    def _scan(self) -> Iterator[Tuple[str, str, int]]:
        """Yield (id, body, updated_at) for every memory file in the directory."""
        try:
            with os.scandir(self.base_dir) as entries:
                names = [
                    entry.name
                    for entry in entries
                    if entry.name.endswith(MEMORY_SUFFIX) and entry.is_file()
                ]
        except OSError as exc:
            raise MemoryStoreError(str(exc)) from exc

        for name in names:
            path = self.base_dir / name
            try:
                body = _read_body(path)
                updated_at = _updated_at(path)
            except FileNotFoundError:
                # Deleted by a concurrent caller between listing and reading.
                logger.debug("Memory file vanished during scan: %s", path)
                continue
            except (OSError, UnicodeDecodeError) as exc:
                raise MemoryStoreError(str(exc)) from exc
            yield name[: -len(MEMORY_SUFFIX)], body, updated_at

    def list(self, limit: Optional[int] = None) -> List[MemorySummary]:
        summaries = [
            MemorySummary(id=memory_id, title=extract_title(body), updated_at=updated_at)
            for memory_id, body, updated_at in self._scan()
        ]
        # sort() is stable: equal timestamps keep directory enumeration order.
        summaries.sort(key=lambda item: item.updated_at, reverse=True)
        if limit is not None:
            summaries = summaries[: max(0, limit)]
        return summaries

    def load(self, memory_id: str) -> MemoryDetail:
        path = self._file(memory_id)
        try:
            body = _read_body(path)
            updated_at = _updated_at(path)
        except FileNotFoundError as exc:
            raise MemoryNotFoundError(str(exc)) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise MemoryStoreError(str(exc)) from exc
        return MemoryDetail(
            id=memory_id,
            title=extract_title(body),
            body=body,
            updated_at=updated_at,
        )

    def save(self, payload: SaveMemoryPayload) -> MemoryDetail:
        """
        Create or overwrite a memory.

        Without an id a new one is assigned: the slugified title (or a
        millisecond timestamp under the "timestamp" strategy), checked for
        uniqueness against the directory. A blank body is replaced by
        `# <title>\\n\\n`.
        """
        title = resolve_title(payload.title)

        if payload.id is not None:
            memory_id = payload.id
        elif self.id_strategy == "timestamp":
            memory_id = timestamp_id(self.base_dir)
        else:
            memory_id = uniquify(self.base_dir, slugify(title))
        path = self._file(memory_id)

        body = payload.body
        if not body.strip():
            body = canonical_body(title)

        try:
            with open(path, "w", encoding="utf-8", newline="") as handle:
                handle.write(body)
                handle.flush()
            updated_at = _updated_at(path)
        except OSError as exc:
            raise MemoryStoreError(str(exc)) from exc

        logger.debug("Saved memory %s (%d chars)", memory_id, len(body))
        return MemoryDetail(
            id=memory_id,
            title=extract_title(body),
            body=body,
            updated_at=updated_at,
        )

    def delete(self, memory_id: str) -> None:
        """Remove a memory. Absent ids are a successful no-op."""
        path = self._file(memory_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise MemoryStoreError(str(exc)) from exc
        logger.debug("Deleted memory %s", memory_id)

    def search(self, query: str) -> List[MemorySearchResult]:
        """
        Case-insensitive substring search over titles, then bodies.

        A title hit uses the title as snippet; a body-only hit uses the first
        matching line. Linear scan of every file on each call.
        """
        trimmed = (query or "").strip()
        if not trimmed:
            return []
        needle = trimmed.lower()

        matches: List[MemorySearchResult] = []
        for memory_id, body, updated_at in self._scan():
            title = extract_title(body)
            title_match = needle in title.lower()
            body_match = not title_match and needle in body.lower()
            if not (title_match or body_match):
                continue
            snippet = ellipsize(title) if title_match else extract_snippet(body, needle)
            matches.append(
                MemorySearchResult(
                    id=memory_id,
                    title=title,
                    snippet=snippet,
                    updated_at=updated_at,
                )
            )

        matches.sort(key=lambda item: item.updated_at, reverse=True)
        return matches
