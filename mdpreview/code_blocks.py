"""Render fenced code as copyable, per-line highlighted HTML.

Each block is highlighted with Pygments (an explicit language when one is
usable, auto-detection otherwise), split into one ``code-line`` span per
source line, and wrapped with a copy button that targets the block's id.
Highlighting problems never stop a block from rendering: the code falls back
to escaped plain text.
"""

from __future__ import annotations

import dataclasses as dc
import logging

from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from ._constants import COPY_ICON_SVG
from .escaping import escape_html, normalize_newlines
from .languages import PLAIN_LANGUAGE, is_diff_language, normalize_language

logger = logging.getLogger(__name__)

EMPTY_LINE_HTML = "&nbsp;"
DIFF_MARKERS = {"+": "addition", "-": "deletion", "@": "hunk"}


@dc.dataclass(frozen=True, slots=True)
class CodeLine:
    """One source line of a code block and how it should be presented.

    Attributes
    ----------
    raw : str
        Source text of the line.
    html : str
        Highlighted (or escaped) markup for the line; never empty.
    flags : frozenset[str]
        Any of ``empty``, ``addition``, ``deletion``, ``hunk``.
    """

    raw: str
    html: str
    flags: frozenset[str] = frozenset()

    @property
    def css_class(self) -> str:
        """Return the ``class`` attribute value for the line span."""
        modifiers = [
            f"code-line-{flag}"
            for flag in ("empty", "addition", "deletion", "hunk")
            if flag in self.flags
        ]
        return " ".join(["code-line", *modifiers])

    def to_html(self) -> str:
        """Return the ``<span>`` wrapping this line."""
        return f'<span class="{self.css_class}">{self.html}</span>'


def split_lines(text: str) -> list[str]:
    """Split ``text`` on newlines, dropping trailing empty lines."""
    lines = text.split("\n")
    while lines and lines[-1] == "":
        lines.pop()
    return lines


def classify_line(raw: str, *, diff: bool) -> frozenset[str]:
    """Return the presentation flags for ``raw``.

    Diff markers are only honoured when ``diff`` is true, so a ``+``-prefixed
    line in another language stays unclassified.
    """
    flags: set[str] = set()
    if not raw:
        flags.add("empty")
    if diff and raw[:1] in DIFF_MARKERS:
        flags.add(DIFF_MARKERS[raw[:1]])
    return frozenset(flags)


def build_code_lines(
    raw: str, highlighted: str, language: str | None
) -> list[CodeLine]:
    """Pair raw and highlighted lines by index into :class:`CodeLine` values.

    Parameters
    ----------
    raw : str
        Source code with LF line endings.
    highlighted : str
        Highlighter output for ``raw``; lines missing here fall back to the
        escaped raw line.
    language : str or None
        Effective language, used to decide whether diff markers apply.

    Returns
    -------
    list[CodeLine]
        One entry per source line. An empty block yields a single empty line.
    """
    raw_lines = split_lines(raw)
    if not raw_lines:
        return [CodeLine(raw="", html=EMPTY_LINE_HTML, flags=frozenset({"empty"}))]

    highlighted_lines = split_lines(highlighted)
    diff = is_diff_language(language)
    lines: list[CodeLine] = []
    for index, raw_line in enumerate(raw_lines):
        if index < len(highlighted_lines):
            html = highlighted_lines[index]
        else:
            html = escape_html(raw_line)
        lines.append(
            CodeLine(
                raw=raw_line,
                html=html or EMPTY_LINE_HTML,
                flags=classify_line(raw_line, diff=diff),
            )
        )
    return lines


class CodeBlockRenderer:
    """Highlight code with Pygments and wrap it in copyable block markup."""

    def __init__(self, pygments_style: str = "monokai") -> None:
        """Create a renderer whose stylesheet uses ``pygments_style``."""
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, nowrap=True)

    @property
    def stylesheet(self) -> str:
        """Return the CSS for highlighted tokens, scoped to ``.hljs``."""
        return self._formatter.get_style_defs(".hljs")

    def highlight(self, code: str, language: str | None) -> tuple[str, str | None]:
        """Highlight ``code`` and report the language that was applied.

        Parameters
        ----------
        code : str
            Source with LF line endings.
        language : str or None
            Normalized language hint; ``None`` requests auto-detection and
            :data:`PLAIN_LANGUAGE` disables highlighting.

        Returns
        -------
        tuple[str, str or None]
            Highlighted HTML and the effective language. On any highlighting
            error the escaped source and the original hint are returned.
        """
        if language == PLAIN_LANGUAGE:
            return escape_html(code), PLAIN_LANGUAGE
        if not code:
            return "", language
        try:
            if language:
                try:
                    lexer = get_lexer_by_name(language, stripnl=False)
                except ClassNotFound:
                    lexer = None
                if lexer is not None:
                    return highlight(code, lexer, self._formatter), language

            lexer = guess_lexer(code, stripnl=False)
            guessed = normalize_language(lexer.aliases[0]) if lexer.aliases else None
            if guessed == PLAIN_LANGUAGE:
                guessed = None
            return highlight(code, lexer, self._formatter), guessed or language
        except Exception:  # noqa: BLE001 - any lexer failure degrades to plain text
            logger.warning(
                "Failed to highlight code block%s",
                f" ({language})" if language else "",
                exc_info=True,
            )
            return escape_html(code), language

    def render(self, code: str, language: str | None, block_id: str) -> str:
        """Return the complete ``code-block`` markup for one fence.

        Parameters
        ----------
        code : str
            Raw fence content.
        language : str or None
            Fence language hint as written; normalized here.
        block_id : str
            Document-unique id shared by the ``<code>`` element and the copy
            button's ``data-code-target``.
        """
        source = normalize_newlines(code)
        highlighted, effective = self.highlight(source, normalize_language(language))
        lines = build_code_lines(source, highlighted, effective)

        classes = ["code-block"]
        classes.append(f"code-block-{effective}" if effective else "code-block-plain")
        if is_diff_language(effective):
            classes.append("code-block-diff")
        attributes = f' data-language="{escape_html(effective)}"' if effective else ""
        language_class = f" language-{effective}" if effective else ""
        safe_id = escape_html(block_id)

        return (
            f'<div class="{escape_html(" ".join(classes))}"{attributes}>\n'
            f'  <button type="button" class="code-copy" data-code-target="{safe_id}"'
            ' aria-label="Copy">\n'
            f"{COPY_ICON_SVG}\n"
            "  </button>\n"
            f'  <pre><code id="{safe_id}" class="hljs{escape_html(language_class)}">'
            f"{''.join(line.to_html() for line in lines)}</code></pre>\n"
            "</div>"
        )


__all__ = [
    "CodeBlockRenderer",
    "CodeLine",
    "build_code_lines",
    "classify_line",
    "split_lines",
]
