"""
Identifier policy for memory files.

Ids double as file stems (`<id>.md`), so every generated id is a lowercase,
hyphen-delimited ASCII slug or a millisecond timestamp.

Known gap: `uniquify` checks the directory and the caller creates the file
afterwards. Two creations racing for the same generated id can both see it as
free, and the later write overwrites the earlier one. No locking is applied.
"""

import re
import time
from pathlib import Path

MEMORY_SUFFIX = ".md"
FALLBACK_SLUG = "memory"

_NON_SLUG_RUN = re.compile(r"[^A-Za-z0-9]+")


def memory_file(base_dir: Path, memory_id: str) -> Path:
    return base_dir / f"{memory_id}{MEMORY_SUFFIX}"


def slugify(text: str) -> str:
    """
    Lowercase ASCII alphanumerics, collapse every other run to one `-`.

    Examples:
        slugify("Shopping List")  -> "shopping-list"
        slugify("  Café / notes") -> "caf-notes"
        slugify("???")            -> "memory"
    """
    slug = _NON_SLUG_RUN.sub("-", text).strip("-").lower()
    return slug or FALLBACK_SLUG


def uniquify(base_dir: Path, base: str) -> str:
    """Return `base` if free, else the first free `base-1`, `base-2`, ..."""
    if not memory_file(base_dir, base).exists():
        return base
    counter = 1
    while True:
        candidate = f"{base}-{counter}"
        if not memory_file(base_dir, candidate).exists():
            return candidate
        counter += 1


def timestamp_id(base_dir: Path) -> str:
    return uniquify(base_dir, str(int(time.time() * 1000)))


def is_valid_memory_id(memory_id: str) -> bool:
    """A caller-supplied id must name a plain file inside the store directory."""
    if not isinstance(memory_id, str) or not memory_id.strip():
        return False
    if memory_id != memory_id.strip():
        return False
    if memory_id.startswith("."):
        return False
    if "/" in memory_id or "\\" in memory_id or "\x00" in memory_id:
        return False
    return True
