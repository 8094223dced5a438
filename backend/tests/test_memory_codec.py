import pytest

from store.codec import (
    ELLIPSIS,
    SNIPPET_MAX_CHARS,
    UNTITLED_MEMORY,
    canonical_body,
    ellipsize,
    extract_snippet,
    extract_title,
    resolve_title,
)


@pytest.mark.parametrize("title", ["Shopping List", "  padded title  ", "Ünïcode ✓", "a # b"])
def test_extract_title_from_heading(title: str) -> None:
    assert extract_title(f"# {title}\n\nbody") == title.strip()


@pytest.mark.parametrize("body", ["", "\n\n", "   \n\t\n", "\r\n"])
def test_extract_title_blank_body(body: str) -> None:
    assert extract_title(body) == UNTITLED_MEMORY


def test_extract_title_skips_blank_lines_and_keeps_plain_text() -> None:
    assert extract_title("\n\n  first real line  \nsecond") == "first real line"


def test_extract_title_only_strips_level_one_marker() -> None:
    assert extract_title("## Sub heading\n") == "## Sub heading"
    assert extract_title("#NoSpace\n") == "#NoSpace"


def test_extract_title_handles_crlf() -> None:
    assert extract_title("# Windows\r\n\r\nbody") == "Windows"


def test_resolve_title() -> None:
    assert resolve_title("  Notes ") == "Notes"
    assert resolve_title("   ") == UNTITLED_MEMORY
    assert resolve_title("") == UNTITLED_MEMORY


def test_canonical_body() -> None:
    assert canonical_body("Shopping List") == "# Shopping List\n\n"


def test_ellipsize_short_text_flattens_newlines() -> None:
    assert ellipsize("  line one\nline two  ") == "line one line two"


def test_ellipsize_truncates_on_characters() -> None:
    text = "é" * (SNIPPET_MAX_CHARS + 40)
    result = ellipsize(text)

    assert result == "é" * SNIPPET_MAX_CHARS + ELLIPSIS
    assert len(result) == SNIPPET_MAX_CHARS + 1


def test_ellipsize_exact_limit_is_untouched() -> None:
    text = "x" * SNIPPET_MAX_CHARS
    assert ellipsize(text) == text


def test_ellipsize_trims_trailing_space_before_marker() -> None:
    text = "a" * (SNIPPET_MAX_CHARS - 1) + " " + "b" * 20
    assert ellipsize(text) == "a" * (SNIPPET_MAX_CHARS - 1) + ELLIPSIS


def test_extract_snippet_returns_first_matching_line() -> None:
    body = "# Groceries\n\nbread\nbuy MILK and eggs\nmore milk later\n"
    assert extract_snippet(body, "milk") == "buy MILK and eggs"


def test_extract_snippet_falls_back_to_whole_body() -> None:
    # The needle spans a line break, so no single line contains it.
    body = "first half\nsecond half"
    assert extract_snippet(body, "half\nsecond") == "first half second half"
