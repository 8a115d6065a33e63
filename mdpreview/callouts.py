r"""Recognise GitHub-style alerts nested inside blockquotes.

A blockquote whose first line is ``[!TAG]`` (optionally followed by a custom
title) becomes a callout. Everything after the header is parsed again as
ordinary Markdown, so callouts may hold lists, code fences, or further quotes.

Example
-------
>>> from mdpreview.callouts import parse_callout
>>> match = parse_callout("> [!TIP] Hydrate\n> Drink water")
>>> (match.variant.key, match.title, match.body)
('tip', 'Hydrate', 'Drink water')
>>> parse_callout("> plain quote") is None
True
"""

from __future__ import annotations

import dataclasses as dc
import re
import types
import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813 - Python-Markdown convention

from markdown.blockprocessors import BlockProcessor
from markdown.util import AtomicString

from .escaping import escape_html

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element
else:  # pragma: no cover - type-checking fallback
    Element = typ.Any


@dc.dataclass(frozen=True, slots=True)
class CalloutVariant:
    """Display metadata for one callout flavour."""

    key: str
    label: str
    icon: str


CALLOUT_VARIANTS: types.MappingProxyType[str, CalloutVariant] = types.MappingProxyType(
    {
        "note": CalloutVariant("note", "Note", "ℹ️"),
        "tip": CalloutVariant("tip", "Tip", "\U0001f4a1"),
        "important": CalloutVariant("important", "Important", "❗"),
        "warning": CalloutVariant("warning", "Warning", "⚠️"),
        "caution": CalloutVariant("caution", "Caution", "⚠️"),
    }
)
DEFAULT_VARIANT = CALLOUT_VARIANTS["note"]

QUOTE_MARKER = re.compile(r"^[ ]{0,3}> ?")
HEADER_PATTERN = re.compile(r"^\[!(\w+)\](?:\s+(.*))?$")
QUOTE_START = re.compile(r"(^|\n)[ ]{0,3}>[ ]?(.*)")


@dc.dataclass(frozen=True, slots=True)
class CalloutMatch:
    """A parsed callout: its variant, display title and raw Markdown body."""

    variant: CalloutVariant
    title: str
    body: str


def _trim_blank_edges(lines: list[str]) -> list[str]:
    """Drop leading and trailing whitespace-only lines."""
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def parse_callout(raw: str) -> CalloutMatch | None:
    """Parse the raw source of a blockquote as a callout.

    Parameters
    ----------
    raw : str
        Blockquote source, quote markers included.

    Returns
    -------
    CalloutMatch or None
        ``None`` when the first line is not a ``[!TAG]`` header, in which case
        the blockquote should render as an ordinary quote. Unknown tags fall
        back to the ``note`` variant; the title defaults to the variant label.
    """
    lines = [QUOTE_MARKER.sub("", line, count=1) for line in raw.split("\n")]
    if not lines or not lines[0].strip():
        return None

    header = HEADER_PATTERN.match(lines[0].strip())
    if not header:
        return None

    tag, custom_title = header.groups()
    variant = CALLOUT_VARIANTS.get(tag.lower(), DEFAULT_VARIANT)
    title = (custom_title or "").strip() or variant.label
    body = "\n".join(_trim_blank_edges(lines[1:]))
    return CalloutMatch(variant=variant, title=title, body=body)


class CalloutBlockProcessor(BlockProcessor):
    """Render callout blockquotes; leave every other quote to Python-Markdown.

    Registered just ahead of the built-in ``quote`` processor. The body is fed
    back through :meth:`BlockParser.parseChunk`, which runs the full block
    grammar (and the engine's own fence and callout processors) over it.
    """

    def test(self, parent: Element, block: str) -> bool:
        """Return ``True`` when ``block`` opens a quote with a callout header."""
        match = QUOTE_START.search(block)
        if not match:
            return False
        return parse_callout(block[match.start() :].lstrip("\n")) is not None

    def run(self, parent: Element, blocks: list[str]) -> None:
        """Emit the callout wrapper for the first block and parse its body."""
        block = blocks.pop(0)
        match = QUOTE_START.search(block)
        if match is None:  # pragma: no cover - guarded by test()
            return
        before = block[: match.start()]
        if before.strip():
            self.parser.parseBlocks(parent, [before])
        callout = parse_callout(block[match.start() :].lstrip("\n"))
        if callout is None:  # pragma: no cover - guarded by test()
            return

        wrapper = etree.SubElement(parent, "div")
        wrapper.set("class", f"callout callout-{callout.variant.key}")
        title = etree.SubElement(wrapper, "p")
        title.set("class", "callout-title")
        icon = etree.SubElement(title, "span")
        icon.set("class", "callout-icon")
        icon.set("aria-hidden", "true")
        icon.text = AtomicString(callout.variant.icon)
        icon.tail = AtomicString(
            self.parser.md.htmlStash.store(escape_html(callout.title))
        )

        if not callout.body.strip():
            return
        content = etree.SubElement(wrapper, "div")
        content.set("class", "callout-content")
        self.parser.parseChunk(content, callout.body)
        if len(content) == 0 and not (content.text or "").strip():
            wrapper.remove(content)


__all__ = [
    "CALLOUT_VARIANTS",
    "DEFAULT_VARIANT",
    "CalloutBlockProcessor",
    "CalloutMatch",
    "CalloutVariant",
    "parse_callout",
]
