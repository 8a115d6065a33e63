"""Expand ``:shortcode:`` emoji in prose text.

The shortcode table is the GitHub gemoji index shipped with
pymdown-extensions. Expansion is wired into Python-Markdown as an inline
processor, so it only ever sees prose: code spans are atomic by the time
inline patterns run and fenced blocks never reach the inline stage.

Example
-------
>>> from mdpreview.emoji import expand
>>> expand("ship it :sparkles:")
'ship it ✨'
>>> expand(":not-an-emoji:")
':not-an-emoji:'
"""

from __future__ import annotations

import re
import types
import typing as typ

from markdown.inlinepatterns import InlineProcessor
from pymdownx.emoji import gemoji

if typ.TYPE_CHECKING:
    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any

SHORTCODE_PATTERN = r"(:[+\-\w]+:)"
SHORTCODE_RE = re.compile(SHORTCODE_PATTERN)


def _build_glyph_table() -> types.MappingProxyType[str, str]:
    """Map every gemoji shortcode (and alias) with a Unicode form to its glyph."""
    index = gemoji({}, None)
    glyphs: dict[str, str] = {}
    for shortcode, entry in index["emoji"].items():
        codepoints = entry.get("unicode_alt") or entry.get("unicode")
        if codepoints:
            glyphs[shortcode] = "".join(
                chr(int(point, 16)) for point in codepoints.split("-")
            )
    for alias, target in index["aliases"].items():
        if target in glyphs:
            glyphs[alias] = glyphs[target]
    return types.MappingProxyType(glyphs)


GLYPHS = _build_glyph_table()


def expand(text: str) -> str:
    """Replace known shortcodes in ``text``; unknown ones are left verbatim."""
    return SHORTCODE_RE.sub(lambda match: GLYPHS.get(match.group(1), match.group(1)), text)


class EmojiInlineProcessor(InlineProcessor):
    """Swap a recognised shortcode for its glyph inside prose text nodes."""

    def __init__(self, md: Markdown) -> None:
        super().__init__(SHORTCODE_PATTERN, md)

    def handleMatch(  # type: ignore[override]  # noqa: N802
        self, m: re.Match[str], data: str
    ) -> tuple[str | None, int | None, int | None]:
        """Return the glyph for the matched shortcode, or decline the match."""
        shortcode = m.group(1)
        glyph = expand(shortcode)
        if glyph == shortcode:
            return None, None, None
        return glyph, m.start(0), m.end(0)


__all__ = ["GLYPHS", "EmojiInlineProcessor", "expand"]
