"""Mermaid diagram rendering and attachment preprocessing."""

from .errors import (
    DiagramBackendUnavailable,
    DiagramError,
    DiagramNotRenderedError,
    DiagramRenderError,
)
from .preprocess import DiagramBlock, collect_diagram_blocks, preprocess_diagrams
from .render import (
    DIAGRAM_CONTENT_TYPE,
    DIAGRAM_LANGUAGE,
    DiagramBackend,
    MermaidRenderer,
    diagram_filename,
    diagram_hash,
)

__all__ = [
    "DIAGRAM_CONTENT_TYPE",
    "DIAGRAM_LANGUAGE",
    "DiagramBackend",
    "DiagramBackendUnavailable",
    "DiagramBlock",
    "DiagramError",
    "DiagramNotRenderedError",
    "DiagramRenderError",
    "MermaidRenderer",
    "collect_diagram_blocks",
    "diagram_filename",
    "diagram_hash",
    "preprocess_diagrams",
]
