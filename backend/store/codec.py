"""Title and snippet derivation for Markdown memory bodies."""

from typing import List

UNTITLED_MEMORY = "Untitled memory"
SNIPPET_MAX_CHARS = 160
ELLIPSIS = "…"


def _lines(text: str) -> List[str]:
    # Only "\n" separates lines; a trailing "\r" belongs to the line ending.
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def extract_title(body: str) -> str:
    for line in _lines(body):
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.startswith("# "):
            return trimmed[2:].strip()
        return trimmed
    return UNTITLED_MEMORY


def resolve_title(title: str) -> str:
    trimmed = (title or "").strip()
    return trimmed if trimmed else UNTITLED_MEMORY


def canonical_body(title: str) -> str:
    """Body written in place of a blank one, so a memory is never empty."""
    return f"# {title}\n\n"


def ellipsize(text: str) -> str:
    """
    Flatten newlines and cap at SNIPPET_MAX_CHARS characters.

    Slicing a str counts code points, so multi-byte characters are never split.
    """
    cleaned = text.strip().replace("\n", " ")
    if len(cleaned) <= SNIPPET_MAX_CHARS:
        return cleaned
    return cleaned[:SNIPPET_MAX_CHARS].rstrip() + ELLIPSIS


def extract_snippet(body: str, needle_lower: str) -> str:
    for line in _lines(body):
        if needle_lower in line.lower():
            return ellipsize(line)
    return ellipsize(body)
