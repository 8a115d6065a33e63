r"""Markdown-to-HTML engine for live previews.

:func:`render` turns one Markdown document into an HTML fragment. Every call
builds a fresh :class:`RenderState` and a fresh ``markdown.Markdown`` instance
with :class:`PreviewExtension` installed, so calls never share mutable state
and may run concurrently. The extension layers four behaviours on top of the
GFM-flavoured baseline:

* heading ``id`` slugs, unique per document;
* ``> [!TAG]`` callouts whose bodies are parsed as nested Markdown;
* fenced code with Pygments highlighting, per-line spans, diff classes and a
  copy button, or diagram placeholders for Mermaid and PlantUML fences;
* ``:shortcode:`` emoji in prose.

``render`` is total: whatever the input, it returns a string.

Example
-------
>>> from mdpreview.engine import render
>>> render("# Hello\n\nText")
'<h1 id="hello">Hello</h1>\n<p>Text</p>'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from markdown import Markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor

from ._constants import CODE_BLOCK_ID_TEMPLATE
from .callouts import CalloutBlockProcessor
from .code_blocks import CodeBlockRenderer
from .diagrams import DiagramDescriptor, render_diagram
from .emoji import EmojiInlineProcessor
from .escaping import escape_html
from .fences import (
    FencedBlockProcessor,
    FencedCode,
    FencePreprocessor,
    LiftedFences,
)
from .languages import is_diagram_language, normalize_language
from .slugs import SlugAllocator

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element
else:  # pragma: no cover - type-checking fallback
    Element = typ.Any

logger = logging.getLogger(__name__)

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
# GFM "disallowed raw HTML": these tags are neutralised even in raw HTML.
DISALLOWED_RAW_TAG = re.compile(
    r"<(?=/?(?:title|textarea|style|xmp|iframe|noembed|noframes|script|plaintext)"
    r"(?:[\s/>]|$))",
    re.IGNORECASE,
)
BASELINE_EXTENSIONS = [
    "tables",
    "sane_lists",
    "pymdownx.tilde",
    "pymdownx.tasklist",
    "pymdownx.magiclink",
]
BASELINE_EXTENSION_CONFIGS = {"pymdownx.tilde": {"subscript": False}}


@dc.dataclass(slots=True)
class RenderState:
    """Mutable bookkeeping for a single :func:`render` call.

    Attributes
    ----------
    slugs : SlugAllocator
        Heading slug counts for the document.
    code_block_counter : int
        Number of code blocks emitted so far.
    diagram_counter : int
        Number of diagrams emitted so far.
    lifted_fences : LiftedFences
        Fences removed from the raw source before block parsing.
    """

    slugs: SlugAllocator = dc.field(default_factory=SlugAllocator)
    code_block_counter: int = 0
    diagram_counter: int = 0
    lifted_fences: LiftedFences = dc.field(default_factory=LiftedFences)

    def next_code_block_id(self) -> str:
        """Reserve and return the next ``code-block-<n>`` id."""
        self.code_block_counter += 1
        return CODE_BLOCK_ID_TEMPLATE.format(index=self.code_block_counter)

    def next_diagram_index(self) -> int:
        """Reserve and return the next diagram number."""
        self.diagram_counter += 1
        return self.diagram_counter


class HeadingSlugTreeprocessor(Treeprocessor):
    """Give every heading an ``id`` derived from its source text.

    Runs before inline processing, so ``element.text`` is still the heading's
    raw Markdown, and walks the tree in document order.
    """

    def __init__(self, md: Markdown, slugs: SlugAllocator) -> None:
        super().__init__(md)
        self.slugs = slugs

    def run(self, root: Element) -> None:
        """Assign slugs to all headings below ``root``."""
        for element in root.iter():
            if element.tag in HEADING_TAGS:
                element.set("id", self.slugs.allocate(element.text or ""))


class PreviewPostprocessor(Postprocessor):
    """Finish the serialized document once raw HTML has been restored."""

    def __init__(self, md: Markdown, extension: PreviewExtension) -> None:
        super().__init__(md)
        self.extension = extension

    def run(self, text: str) -> str:
        """Render stray fence markers and apply the GFM tag filter."""
        text = self.extension.state.lifted_fences.restore(
            text, self.extension.render_fence
        )
        return DISALLOWED_RAW_TAG.sub("&lt;", text)


class PreviewExtension(Extension):
    """Install the preview hooks on a ``markdown.Markdown`` instance.

    One extension instance serves exactly one render: it carries that call's
    :class:`RenderState` and code block renderer.
    """

    def __init__(self, state: RenderState, code_renderer: CodeBlockRenderer) -> None:
        self.config: dict[str, list[typ.Any]] = {}
        super().__init__()
        self.state = state
        self.code_renderer = code_renderer

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the fence, callout, heading, emoji, and cleanup hooks."""
        md.preprocessors.register(
            FencePreprocessor(md, self.state.lifted_fences), "preview_fences", 35
        )
        md.parser.blockprocessors.register(
            FencedBlockProcessor(md.parser, self.state.lifted_fences, self.render_fence),
            "preview_fenced_block",
            75,
        )
        md.parser.blockprocessors.register(
            CalloutBlockProcessor(md.parser), "preview_callout", 21
        )
        md.treeprocessors.register(
            HeadingSlugTreeprocessor(md, self.state.slugs), "preview_heading_slugs", 25
        )
        md.inlinePatterns.register(EmojiInlineProcessor(md), "preview_emoji", 75)
        md.postprocessors.register(
            PreviewPostprocessor(md, self), "preview_finalize", 15
        )

    def render_fence(self, fence: FencedCode) -> str:
        """Return diagram or code block markup for ``fence``."""
        language = normalize_language(fence.language)
        if is_diagram_language(language):
            diagram = DiagramDescriptor.create(
                language, fence.source, self.state.next_diagram_index()
            )
            return render_diagram(diagram)
        return self.code_renderer.render(
            fence.source, fence.language, self.state.next_code_block_id()
        )


class PreviewRenderer:
    """Render Markdown documents into preview fragments.

    The renderer holds configuration and a Pygments formatter that is only
    read while formatting; each :meth:`render` call builds its own parser and
    state.
    """

    def __init__(self, pygments_style: str = "monokai") -> None:
        """Create a renderer whose stylesheet uses ``pygments_style``.

        Raises
        ------
        pygments.util.ClassNotFound
            If ``pygments_style`` is not an installed Pygments style.
        """
        self.pygments_style = pygments_style
        self._code_renderer = CodeBlockRenderer(pygments_style)

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._code_renderer.stylesheet

    def render(self, markdown_text: str) -> str:
        """Render ``markdown_text`` into an HTML fragment.

        Parameters
        ----------
        markdown_text : str
            Complete Markdown document.

        Returns
        -------
        str
            HTML suitable for a container's ``innerHTML``. If the parser fails
            unexpectedly the document is returned as one escaped ``<pre>``.
        """
        state = RenderState()
        md = Markdown(
            extensions=[
                PreviewExtension(state, self._code_renderer),
                *BASELINE_EXTENSIONS,
            ],
            extension_configs=BASELINE_EXTENSION_CONFIGS,
        )
        try:
            return md.convert(markdown_text)
        except Exception:  # noqa: BLE001 - render must always return markup
            logger.warning("Markdown conversion failed; showing source", exc_info=True)
            return f'<pre class="render-fallback">{escape_html(markdown_text)}</pre>'


def render(markdown_text: str) -> str:
    """Render ``markdown_text`` with the default renderer settings."""
    return PreviewRenderer().render(markdown_text)


__all__ = [
    "HeadingSlugTreeprocessor",
    "PreviewExtension",
    "PreviewRenderer",
    "RenderState",
    "render",
]
