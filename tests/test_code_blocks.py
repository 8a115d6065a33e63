"""Tests for the code block renderer: highlighting, line spans, and diffs."""

from __future__ import annotations

import logging

import pytest
from bs4 import BeautifulSoup

from mdpreview import code_blocks
from mdpreview.code_blocks import (
    CodeBlockRenderer,
    CodeLine,
    build_code_lines,
    classify_line,
    split_lines,
)
from mdpreview.languages import PLAIN_LANGUAGE


@pytest.fixture
def renderer() -> CodeBlockRenderer:
    """Return a renderer using the default Pygments style."""
    return CodeBlockRenderer()


def _soup(html: str) -> BeautifulSoup:
    """Parse ``html`` for structural assertions."""
    return BeautifulSoup(html, "html.parser")


def _line_classes(html: str) -> list[list[str]]:
    """Return the class list of every ``code-line`` span in ``html``."""
    return [span["class"] for span in _soup(html).select("span.code-line")]


def test_split_lines_drops_trailing_empty_lines() -> None:
    """A final newline does not produce an extra empty line."""
    assert split_lines("a\nb\n\n") == ["a", "b"]
    assert split_lines("\na") == ["", "a"]
    assert split_lines("") == []


def test_empty_block_has_one_placeholder_line() -> None:
    """Code with no lines still renders one visible empty line."""
    lines = build_code_lines("", "", None)
    assert lines == [CodeLine(raw="", html="&nbsp;", flags=frozenset({"empty"}))]


def test_missing_highlighted_lines_fall_back_to_escaped_raw() -> None:
    """Raw lines without a highlighted counterpart are escaped."""
    lines = build_code_lines("a\n<b>", "<em>a</em>", None)
    assert [line.html for line in lines] == ["<em>a</em>", "&lt;b&gt;"]


def test_classification_only_applies_to_diffs() -> None:
    """``+`` and ``-`` prefixes only matter for diff-shaped languages."""
    assert classify_line("+x", diff=True) == frozenset({"addition"})
    assert classify_line("-x", diff=True) == frozenset({"deletion"})
    assert classify_line("@@ -1 +1 @@", diff=True) == frozenset({"hunk"})
    assert classify_line("+x", diff=False) == frozenset()
    assert classify_line("", diff=True) == frozenset({"empty"})


def test_explicit_language_is_highlighted(renderer: CodeBlockRenderer) -> None:
    """A known language is highlighted and tags the block."""
    soup = _soup(renderer.render("const x = 1;\n", "ts", "code-block-1"))
    block = soup.select_one("div.code-block")
    assert block is not None
    assert block["class"] == ["code-block", "code-block-typescript"]
    assert block["data-language"] == "typescript"
    code = soup.select_one("code#code-block-1")
    assert code is not None
    assert code["class"] == ["hljs", "language-typescript"]
    assert code.select("span.code-line span"), "expected Pygments token spans"
    button = soup.select_one("button.code-copy")
    assert button is not None
    assert button["data-code-target"] == "code-block-1"


def test_plain_text_sentinel_skips_highlighting(renderer: CodeBlockRenderer) -> None:
    """``text`` fences are escaped but never tokenized."""
    html = renderer.render("<tag> & 'quote'\n", "text", "code-block-2")
    soup = _soup(html)
    block = soup.select_one("div.code-block")
    assert block is not None
    assert "code-block-plaintext" in block["class"]
    assert soup.select("span.code-line span") == []
    assert "&lt;tag&gt; &amp; &#x27;quote&#x27;" in html


def test_no_language_uses_auto_detection(renderer: CodeBlockRenderer) -> None:
    """Blocks without a hint still render every line."""
    source = "def greet(name):\n    return f'hi {name}'\n"
    html = renderer.render(source, None, "code-block-3")
    assert len(_line_classes(html)) == 2
    assert "code-block" in _soup(html).select_one("div")["class"]


def test_empty_block_renders_plain_placeholder(renderer: CodeBlockRenderer) -> None:
    """An empty, untagged fence is a plain block with one empty line."""
    soup = _soup(renderer.render("", None, "code-block-4"))
    block = soup.select_one("div.code-block")
    assert block is not None
    assert block["class"] == ["code-block", "code-block-plain"]
    assert not block.has_attr("data-language")
    assert soup.select_one("code")["class"] == ["hljs"]
    assert _line_classes(str(soup)) == [["code-line", "code-line-empty"]]


def test_crlf_is_normalized(renderer: CodeBlockRenderer) -> None:
    """Windows line endings produce the same lines as LF."""
    crlf = renderer.render("a\r\nb\r\n", "text", "code-block-5")
    lf = renderer.render("a\nb\n", "text", "code-block-5")
    assert crlf == lf
    assert "\r" not in crlf


def test_diff_lines_are_classified(renderer: CodeBlockRenderer) -> None:
    """Additions, deletions, hunks, and context lines get distinct classes."""
    html = renderer.render("+a\n-b\n@@ -1,1 +1,1 @@\nc\n", "diff", "code-block-6")
    assert "code-block-diff" in _soup(html).select_one("div")["class"]
    assert _line_classes(html) == [
        ["code-line", "code-line-addition"],
        ["code-line", "code-line-deletion"],
        ["code-line", "code-line-hunk"],
        ["code-line"],
    ]


def test_plus_lines_outside_diffs_are_not_classified(
    renderer: CodeBlockRenderer,
) -> None:
    """A ``+``-prefixed line in another language stays plain."""
    html = renderer.render("+1\n-1\n", "text", "code-block-7")
    assert _line_classes(html) == [["code-line"], ["code-line"]]


def test_blank_interior_lines_stay_visible(renderer: CodeBlockRenderer) -> None:
    """Empty lines inside a block carry a non-breaking space."""
    html = renderer.render("a\n\nb\n", "python", "code-block-8")
    spans = _soup(html).select("span.code-line")
    assert len(spans) == 3
    assert spans[1]["class"] == ["code-line", "code-line-empty"]
    assert spans[1].get_text() == "\xa0"


def test_unsafe_language_hint_is_escaped(renderer: CodeBlockRenderer) -> None:
    """Odd language words never break out of attribute values."""
    html = renderer.render("x\n", 'a"b', "code-block-9")
    assert 'a"b' not in html


def test_highlighting_failure_falls_back_to_plain_text(
    renderer: CodeBlockRenderer,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Lexer errors are logged and the block renders as escaped text."""

    def _explode(*_args: object, **_kwargs: object) -> str:
        """Simulate a lexer crashing mid-highlight."""
        msg = "lexer blew up"
        raise RuntimeError(msg)

    monkeypatch.setattr(code_blocks, "highlight", _explode)
    with caplog.at_level(logging.WARNING, logger="mdpreview.code_blocks"):
        html = renderer.render("x < 1\n", "python", "code-block-10")

    assert "x &lt; 1" in html
    block = _soup(html).select_one("div.code-block")
    assert block is not None
    assert "code-block-python" in block["class"]
    assert any("Failed to highlight" in record.message for record in caplog.records)


def test_stylesheet_targets_hljs(renderer: CodeBlockRenderer) -> None:
    """The exported CSS is scoped to highlighted code elements."""
    assert ".hljs" in renderer.stylesheet


def test_highlight_reports_plain_sentinel() -> None:
    """The plain sentinel is its own effective language."""
    html, language = CodeBlockRenderer().highlight("a & b", PLAIN_LANGUAGE)
    assert (html, language) == ("a &amp; b", PLAIN_LANGUAGE)
