"""Render a document's diagram blocks into attachments ahead of conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..converters import nodes
from ..converters.context import AttachmentInfo, ConversionContext
from ..converters.nodes import SyntaxNode
from ..core.async_utils import gather_settled
from .errors import DiagramBackendUnavailable
from .render import (
    DIAGRAM_CONTENT_TYPE,
    DIAGRAM_LANGUAGE,
    DiagramBackend,
    diagram_filename,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagramBlock:
    """A distinct diagram found in a document."""

    source: str
    filename: str


def collect_diagram_blocks(tree: SyntaxNode) -> list[DiagramBlock]:
    """Return the document's distinct diagram blocks in document order.

    Blocks with identical source share one filename and are listed once.
    Empty blocks are skipped, so conversion rejects them as unrendered.
    """
    blocks: list[DiagramBlock] = []
    seen: set[str] = set()
    for node in nodes.walk(tree):
        if node.kind != nodes.CODE_BLOCK:
            continue
        if node.get("lang") != DIAGRAM_LANGUAGE or not node.value:
            continue
        filename = diagram_filename(node.value)
        if filename in seen:
            continue
        seen.add(filename)
        blocks.append(DiagramBlock(source=node.value, filename=filename))
    return blocks


async def preprocess_diagrams(
    tree: SyntaxNode,
    context: ConversionContext,
    backend: DiagramBackend | None,
) -> None:
    """Render every diagram in *tree* and add the images to *context*.

    A no-op when diagrams are disabled or the document has none. Diagrams
    render concurrently; a diagram that fails is logged and left out of
    ``context.attachments``.

    Raises:
        DiagramBackendUnavailable: Diagrams are present and enabled but the
            backend cannot run.
    """
    if not context.diagrams_enabled:
        return

    blocks = collect_diagram_blocks(tree)
    if not blocks:
        return

    if backend is None or not backend.available():
        command = getattr(backend, "command", context.config.mermaid_cli)
        raise DiagramBackendUnavailable(command)

    logger.debug("Rendering %d mermaid diagram(s)", len(blocks))
    results = await gather_settled(
        [backend.render(block.source) for block in blocks]
    )

    for block, result in zip(blocks, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Failed to render mermaid diagram %s: %s", block.filename, result
            )
            continue
        context.add_attachment(
            AttachmentInfo(
                filename=block.filename,
                data=result,
                content_type=DIAGRAM_CONTENT_TYPE,
            )
        )
