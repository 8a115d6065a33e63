"""Render Markdown into HTML fragments for live, in-page previews.

Exports
-------
- ``render``: render one document with default settings.
- ``PreviewRenderer``: renderer bound to a Pygments style.
- ``app`` / ``main``: the ``mdpreview`` command line.

Examples
--------
>>> from mdpreview import render
>>> render("> [!TIP]\\n> Hydrate").startswith('<div class="callout callout-tip">')
True
"""

from __future__ import annotations

from .cli import app, main
from .engine import PreviewRenderer, render

__all__ = ["PreviewRenderer", "app", "main", "render"]
