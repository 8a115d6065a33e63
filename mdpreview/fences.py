r"""Find fenced code blocks and hand them to the fence renderer in order.

Fences are lifted out of the raw source before Python-Markdown normalizes it,
so tabs in code survive and the raw-HTML preprocessor never claims HTML-looking
lines inside a fence. Each lifted fence leaves a marker line behind: one
isolated by blank lines at the top level or inside a blockquote, and one
indented one tab stop when the fence belongs to a list item, so the list
parser nests it. The block processor then renders markers, and any fences the
preprocessor could not see, as the block parser walks the document, which
keeps block numbering in document order.

Example
-------
>>> from mdpreview.fences import scan_fence
>>> fence, end = scan_fence(["```py", "print(1)", "```", "after"], 0)
>>> (fence.language, fence.source, end)
('py', 'print(1)', 3)
"""

from __future__ import annotations

import dataclasses as dc
import re
import secrets
import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813 - Python-Markdown convention

from markdown.blockprocessors import BlockProcessor
from markdown.preprocessors import Preprocessor

from .escaping import normalize_newlines

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from xml.etree.ElementTree import Element

    from markdown import Markdown
    from markdown.blockparser import BlockParser
else:  # pragma: no cover - type-checking fallback
    cabc = typ.Any
    Element = typ.Any
    Markdown = typ.Any
    BlockParser = typ.Any

FENCE_OPEN = re.compile(r"^(?P<indent>[ ]{0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
QUOTE_MARKER = re.compile(r"^[ ]{0,3}>[ ]?")
QUOTE_PREFIX = re.compile(r"^(?:[ ]{0,3}>[ ]?)+")
LIST_ITEM = re.compile(r"^(?P<indent>[ ]{0,3})(?:[*+-]|\d{1,9}[.)])[ ]+(?=\S)")
MARKER_TEMPLATE = "mdpreview-fence-{token}-{index}"
MARKER_PATTERN = r"mdpreview-fence-{token}-(\d+)"
MAX_OPENER_INDENT = 3


@dc.dataclass(frozen=True, slots=True)
class FencedCode:
    """Content of one fenced block.

    Attributes
    ----------
    language : str or None
        First word of the info string with any ``,attributes`` suffix
        removed; ``None`` when the info string is blank.
    source : str
        Lines between the fences, joined with ``\n``, without a trailing
        newline.
    """

    language: str | None
    source: str


@dc.dataclass(slots=True)
class LiftedFences:
    """Fences removed from one document, addressed by marker lines.

    The marker embeds a random per-document token, so text an author typed
    can never be mistaken for a marker.
    """

    token: str = dc.field(default_factory=lambda: secrets.token_hex(8))
    fences: list[FencedCode] = dc.field(default_factory=list)

    @property
    def pattern(self) -> re.Pattern[str]:
        """Return the regex matching this document's markers."""
        return re.compile(MARKER_PATTERN.format(token=re.escape(self.token)))

    def add(self, fence: FencedCode) -> str:
        """Store ``fence`` and return the marker that stands in for it."""
        self.fences.append(fence)
        return MARKER_TEMPLATE.format(token=self.token, index=len(self.fences) - 1)

    def lookup(self, line: str) -> FencedCode | None:
        """Return the fence for a line holding only a marker."""
        match = self.pattern.fullmatch(line.strip())
        if match is None:
            return None
        return self.fences[int(match.group(1))]

    def restore(self, text: str, render: cabc.Callable[[FencedCode], str]) -> str:
        """Render markers that ended up inside raw HTML instead of the tree."""
        return self.pattern.sub(
            lambda match: render(self.fences[int(match.group(1))]), text
        )


def _info_language(info: str) -> str | None:
    """Return the language word of a fence info string."""
    words = info.split()
    if not words:
        return None
    return words[0].split(",", 1)[0] or None


def open_fence(line: str) -> re.Match[str] | None:
    """Return the opener match for ``line`` when it starts a fence."""
    match = FENCE_OPEN.match(line)
    if not match:
        return None
    if match.group("fence")[0] == "`" and "`" in match.group("info"):
        return None
    return match


def _dedent(line: str, width: int) -> str:
    """Remove up to ``width`` leading spaces from ``line``."""
    stripped = 0
    while stripped < width and stripped < len(line) and line[stripped] == " ":
        stripped += 1
    return line[stripped:]


def _indent_width(line: str) -> int:
    """Return the number of leading spaces in ``line``."""
    return len(line) - len(line.lstrip(" "))


def scan_fence(lines: list[str], start: int) -> tuple[FencedCode, int] | None:
    """Read the fence that opens at ``lines[start]``.

    Parameters
    ----------
    lines : list[str]
        Source lines of the enclosing container.
    start : int
        Index of the candidate opening line.

    Returns
    -------
    tuple[FencedCode, int] or None
        The fence and the index of the first line after it, or ``None`` when
        ``lines[start]`` is not an opener. An unclosed fence extends to the end
        of ``lines``.
    """
    opener = open_fence(lines[start])
    if opener is None:
        return None
    fence = opener.group("fence")
    indent = len(opener.group("indent"))
    closer = re.compile(rf"^[ ]{{0,3}}{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")

    body: list[str] = []
    index = start + 1
    while index < len(lines):
        if closer.match(lines[index]):
            index += 1
            break
        body.append(_dedent(lines[index], indent))
        index += 1
    code = FencedCode(_info_language(opener.group("info")), "\n".join(body))
    return code, index


def _strip_quote(line: str, depth: int) -> str | None:
    """Remove ``depth`` blockquote markers from ``line``, or return ``None``."""
    for _ in range(depth):
        match = QUOTE_MARKER.match(line)
        if match is None:
            return None
        line = line[match.end() :]
    return line


def scan_quoted_fence(
    lines: list[str], start: int, prefix: str
) -> tuple[FencedCode, int] | None:
    """Read a fence opening inside the blockquote ``prefix`` at ``lines[start]``.

    The fence ends at its closer or at the first line that leaves the quote.
    """
    depth = prefix.count(">")
    inner: list[str] = []
    for line in lines[start:]:
        stripped = _strip_quote(line, depth)
        if stripped is None:
            break
        inner.append(stripped)
    scanned = scan_fence(inner, 0)
    if scanned is None:
        return None
    fence, end = scanned
    return fence, start + end


def _track_list_item(line: str, item_offsets: list[int]) -> None:
    """Update the content offsets of the list items ``line`` may belong to."""
    if not line.strip():
        return
    item = LIST_ITEM.match(line)
    if item is not None:
        indent = len(item.group("indent"))
        while item_offsets and item_offsets[-1] > indent:
            item_offsets.pop()
        item_offsets.append(item.end())
    elif not line.startswith((" ", "\t")):
        item_offsets.clear()


def _belongs_to_item(line: str, item_offsets: list[int]) -> bool:
    """Return ``True`` when an indented opener continues an open list item."""
    indent = _indent_width(line)
    return bool(item_offsets) and indent > 0 and indent >= min(item_offsets)


class FencePreprocessor(Preprocessor):
    """Lift fences out of the raw source, ahead of whitespace normalization."""

    def __init__(self, md: Markdown, lifted: LiftedFences) -> None:
        super().__init__(md)
        self.lifted = lifted

    def run(self, lines: list[str]) -> list[str]:
        """Replace each fence Python-Markdown would see with a marker line."""
        lines = normalize_newlines("\n".join(lines)).split("\n")
        output: list[str] = []
        item_offsets: list[int] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            quote = QUOTE_PREFIX.match(line)
            if quote is not None:
                scanned = scan_quoted_fence(lines, index, quote.group(0))
            else:
                scanned = scan_fence(lines, index)
            if scanned is None:
                _track_list_item(line, item_offsets)
                output.append(line)
                index += 1
                continue

            fence, end = scanned
            marker = self.lifted.add(fence)
            if quote is not None:
                prefix = quote.group(0)
                output.extend([prefix.rstrip(), prefix + marker, prefix.rstrip()])
                _track_list_item(line, item_offsets)
            elif _belongs_to_item(line, item_offsets):
                output.append(" " * self.md.tab_length + marker)
                if output[-2:-1] == [""]:
                    output.append("")
            else:
                output.extend(["", marker, ""])
                item_offsets.clear()
            index = end
        return output


class FencedBlockProcessor(BlockProcessor):
    """Render fences as the block parser reaches them.

    ``render`` turns a :class:`FencedCode` into block-level HTML; the result
    is stashed so no later stage touches it. Markers are claimed at up to
    three spaces of indentation, or deeper inside a list item, where a tight
    list leaves them indented.
    """

    def __init__(
        self,
        parser: BlockParser,
        lifted: LiftedFences,
        render: cabc.Callable[[FencedCode], str],
    ) -> None:
        super().__init__(parser)
        self.lifted = lifted
        self.render = render

    def _marker_fence(self, parent: Element, line: str) -> FencedCode | None:
        """Return the lifted fence when ``line`` is a marker claimable here."""
        fence = self.lifted.lookup(line)
        if fence is None:
            return None
        if _indent_width(line) > MAX_OPENER_INDENT and parent.tag != "li":
            return None
        return fence

    def _starts_fence(self, parent: Element, line: str) -> bool:
        return self._marker_fence(parent, line) is not None or bool(open_fence(line))

    def test(self, parent: Element, block: str) -> bool:
        """Return ``True`` for blocks holding a marker or a fence opener."""
        return any(self._starts_fence(parent, line) for line in block.split("\n"))

    def run(self, parent: Element, blocks: list[str]) -> None:
        """Render the first fence of the head block into ``parent``."""
        lines = blocks.pop(0).split("\n")
        start = next(
            index
            for index, line in enumerate(lines)
            if self._starts_fence(parent, line)
        )
        if "\n".join(lines[:start]).strip():
            self.parser.parseBlocks(parent, ["\n".join(lines[:start])])

        fence = self._marker_fence(parent, lines[start])
        if fence is None:
            fence = self._consume_nested("\n".join(lines[start:]), blocks)
        else:
            rest = "\n".join(lines[start + 1 :])
            if rest.strip():
                blocks.insert(0, rest)
        placeholder = self.parser.md.htmlStash.store(self.render(fence))
        etree.SubElement(parent, "p").text = placeholder

    @staticmethod
    def _consume_nested(text: str, blocks: list[str]) -> FencedCode:
        """Read a fence that may span several blank-line separated blocks."""
        text = "\n\n".join([text, *blocks])
        del blocks[:]
        source_lines = text.split("\n")
        scanned = scan_fence(source_lines, 0)
        if scanned is None:  # pragma: no cover - guarded by test()
            return FencedCode(None, text)
        fence, end = scanned
        rest = "\n".join(source_lines[end:]).lstrip("\n")
        if rest:
            blocks[0:0] = rest.split("\n\n")
        return fence


__all__ = [
    "FENCE_OPEN",
    "FencePreprocessor",
    "FencedBlockProcessor",
    "FencedCode",
    "LiftedFences",
    "open_fence",
    "scan_fence",
    "scan_quoted_fence",
]
