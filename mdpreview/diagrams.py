"""Emit placeholder markup for diagram fences (Mermaid, PlantUML).

Diagram source is never parsed or executed here. The figure carries a render
target, a status message, the escaped source and a copy button; the page's
hydration script finds the target by id and renders into it later.
"""

from __future__ import annotations

import dataclasses as dc
import types
import typing as typ

from ._constants import COPY_ICON_SVG, DIAGRAM_ID_TEMPLATE
from .escaping import escape_html, normalize_newlines

DiagramState = typ.Literal["pending", "unsupported"]


@dc.dataclass(frozen=True, slots=True)
class DiagramMetadata:
    """Presentation details for one diagram kind."""

    label: str
    initial_state: DiagramState
    message: str
    copy_label: str


DIAGRAM_METADATA: types.MappingProxyType[str, DiagramMetadata] = types.MappingProxyType(
    {
        "mermaid": DiagramMetadata(
            label="Mermaid",
            initial_state="pending",
            message="Rendering Mermaid diagram...",
            copy_label="Copy Mermaid source",
        ),
        "plantuml": DiagramMetadata(
            label="PlantUML",
            initial_state="unsupported",
            message=(
                "PlantUML preview requires an external renderer. "
                "The source is shown below."
            ),
            copy_label="Copy PlantUML source",
        ),
    }
)


@dc.dataclass(frozen=True, slots=True)
class DiagramDescriptor:
    """Everything needed to emit one diagram figure.

    Attributes
    ----------
    kind : str
        Canonical diagram language (a key of :data:`DIAGRAM_METADATA`).
    source : str
        Diagram source exactly as written in the fence.
    target_id : str
        Document-unique id of the render target, ``diagram-<kind>-<n>``.
    state : str
        ``pending`` when a client-side renderer exists, else ``unsupported``.
    """

    kind: str
    source: str
    target_id: str
    state: DiagramState

    @classmethod
    def create(cls, kind: str, source: str, index: int) -> DiagramDescriptor:
        """Build the descriptor for the ``index``-th diagram of a document."""
        return cls(
            kind=kind,
            source=normalize_newlines(source),
            target_id=DIAGRAM_ID_TEMPLATE.format(kind=kind, index=index),
            state=DIAGRAM_METADATA[kind].initial_state,
        )


def render_diagram(diagram: DiagramDescriptor) -> str:
    """Return the ``<figure>`` markup for ``diagram``."""
    metadata = DIAGRAM_METADATA[diagram.kind]
    message = metadata.message
    if not diagram.source.strip():
        message = f"The {metadata.label} diagram is empty."
    target = escape_html(diagram.target_id)

    return (
        f'<figure class="diagram diagram-{diagram.kind}"'
        f' data-diagram-kind="{diagram.kind}" data-diagram-state="{diagram.state}">\n'
        f'  <div class="diagram-target" id="{target}" data-diagram-target="{target}"'
        f' role="img" aria-label="{escape_html(f"{metadata.label} diagram")}"></div>\n'
        f'  <p class="diagram-message" data-diagram-message>{escape_html(message)}</p>\n'
        f'  <pre class="diagram-source" data-diagram-source="{target}">'
        f"<code>{escape_html(diagram.source)}</code></pre>\n"
        f'  <button type="button" class="diagram-copy" data-diagram-copy="{target}"'
        f' aria-label="{escape_html(metadata.copy_label)}">\n'
        f"{COPY_ICON_SVG}\n"
        "  </button>\n"
        "</figure>"
    )


__all__ = [
    "DIAGRAM_METADATA",
    "DiagramDescriptor",
    "DiagramMetadata",
    "render_diagram",
]
