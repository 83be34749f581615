"""Conversion pipeline: Markdown text -> storage format markup + attachments.

parse -> render diagrams into the context -> convert the tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from .config import Config
from .converters.context import AttachmentInfo, ConversionContext
from .converters.parser import parse
from .converters.registry import NodeRegistry
from .converters.registry import convert as default_convert
from .diagrams.preprocess import preprocess_diagrams
from .diagrams.render import DiagramBackend

PAGE_ID_KEY = "confluence-page-id"


@dataclass(frozen=True)
class ConvertedDocument:
    """Everything the sync engine needs from one Markdown document.

    Attributes:
        title: Derived page title.
        frontmatter: Front-matter mapping.
        markup: Confluence storage format body.
        attachments: Attachment filename -> ``AttachmentInfo``.
        page_id: Explicit page id from front matter, if any.
    """

    title: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    markup: str = ""
    attachments: dict[str, AttachmentInfo] = field(default_factory=dict)
    page_id: str | None = None


def frontmatter_page_id(frontmatter: dict[str, Any]) -> str | None:
    """Return the ``confluence-page-id`` front-matter value as a string.

    YAML reads unquoted ids as integers, so both forms are accepted.
    """
    value = frontmatter.get(PAGE_ID_KEY)
    if value is None or value == "":
        return None
    return str(value).strip() or None


async def convert_document(
    text: str,
    filename: str | None,
    config: Config,
    backend: DiagramBackend | None,
    registry: NodeRegistry | None = None,
) -> ConvertedDocument:
    """Convert one Markdown document, rendering its diagrams first.

    Args:
        text: Markdown source.
        filename: Source path (title fallback).
        config: Effective configuration.
        backend: Diagram renderer; only consulted when diagrams are present
            and enabled.
        registry: Emitter registry; the default storage format registry
            when omitted.

    Raises:
        DiagramBackendUnavailable: Diagrams need rendering but ``backend``
            cannot run.
        DiagramNotRenderedError: A diagram failed to render and is still
            referenced by the document.
    """
    parsed = parse(text, filename)
    context = ConversionContext(
        config=config,
        frontmatter=parsed.frontmatter,
        page_id=frontmatter_page_id(parsed.frontmatter),
    )

    await preprocess_diagrams(parsed.tree, context, backend)
    if registry is None:
        markup = default_convert(parsed.tree, context)
    else:
        markup = registry.convert(parsed.tree, context)

    return ConvertedDocument(
        title=parsed.title,
        frontmatter=parsed.frontmatter,
        markup=markup,
        attachments=dict(context.attachments),
        page_id=context.page_id,
    )


def markdown_to_storage(text: str, config: Config) -> str:
    """Convert Markdown to storage format without rendering diagrams.

    Mermaid blocks are emitted as plain code macros regardless of
    ``config.mermaid``.
    """
    parsed = parse(text)
    context = ConversionContext(
        config=_without_diagrams(config),
        frontmatter=parsed.frontmatter,
        page_id=frontmatter_page_id(parsed.frontmatter),
    )
    return default_convert(parsed.tree, context)


def _without_diagrams(config: Config) -> Config:
    if not config.mermaid:
        return config
    return replace(config, mermaid=False)
