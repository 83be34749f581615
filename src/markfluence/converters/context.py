"""Per-document conversion state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import Config


@dataclass(frozen=True)
class AttachmentInfo:
    """A named binary asset produced while converting a document.

    Attributes:
        filename: Attachment name, derived from the asset's content.
        data: Raw payload.
        content_type: MIME type sent with the upload.
    """

    filename: str
    data: bytes
    content_type: str


@dataclass
class ConversionContext:
    """State threaded through every conversion call for one document.

    Created once per document, populated by the diagram preprocessor,
    read by the emitters and the sync engine, then discarded.

    Attributes:
        config: Effective configuration (diagram rendering, verbosity).
        frontmatter: The document's front-matter mapping.
        attachments: Attachment filename -> ``AttachmentInfo``.
        page_id: Remote page id declared by the document, if any.
    """

    config: Config
    frontmatter: dict[str, Any] = field(default_factory=dict)
    attachments: dict[str, AttachmentInfo] = field(default_factory=dict)
    page_id: str | None = None

    @property
    def verbose(self) -> bool:
        return self.config.verbose

    @property
    def diagrams_enabled(self) -> bool:
        return self.config.mermaid

    def add_attachment(self, attachment: AttachmentInfo) -> None:
        self.attachments[attachment.filename] = attachment
