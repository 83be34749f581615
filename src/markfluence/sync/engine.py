"""Sync engine: push Markdown files to Confluence pages idempotently.

For each file the ``SyncEngine``:

1. Reads and converts the Markdown (rendering mermaid diagrams first).
2. Finds the target page, by explicit ``confluence-page-id`` or by title
   within the configured space.
3. Compares content hashes: equal means skip, different means update
   (at the fetched version + 1), no page means create.
4. After a create or update, uploads new attachments and refreshes the
   data of attachments that already exist by filename.

Files are processed one at a time. A Confluence API failure marks that
file as errored and the run continues; any other exception aborts the run.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path

from ..config import Config
from ..converters.context import AttachmentInfo
from ..converters.registry import NodeRegistry
from ..core.async_utils import run_sync
from ..core.client import ConfluenceApiError, ConfluenceClient
from ..core.models import RemoteDocument
from ..diagrams.render import DiagramBackend, MermaidRenderer
from ..file_handler import expand_paths, read_file_async
from ..pipeline import ConvertedDocument, convert_document
from .models import SyncAction, SyncOutcome, SyncReport

logger = logging.getLogger(__name__)

NEW_PAGE_ID = "new"


def content_hash(markup: str) -> str:
    """Return the MD5 hex digest of *markup* (UTF-8)."""
    return hashlib.md5(markup.encode("utf-8")).hexdigest()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncEngine:
    """Reconcile Markdown files against Confluence pages.

    Args:
        client: ConfluenceClient (or any object with the same methods).
        config: Effective configuration (space, parent, dry run, ...).
        backend: Diagram renderer; defaults to the mermaid CLI named in
            ``config.mermaid_cli``.
        registry: Emitter registry override, mainly for tests.
    """

    def __init__(
        self,
        client: ConfluenceClient,
        config: Config,
        backend: DiagramBackend | None = None,
        registry: NodeRegistry | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.backend = backend or MermaidRenderer(config.mermaid_cli)
        self.registry = registry

    # ------------------------------------------------------------------
    # Main entry points
    # ------------------------------------------------------------------

    async def run(self, paths: list[str]) -> SyncReport:
        """Sync every Markdown file named by *paths*.

        Directories contribute their direct ``*.md`` children. Files are
        synced strictly one after another.

        Returns:
            A ``SyncReport`` with one outcome per file, in order.
        """
        started_at = _now()
        files = await run_sync(expand_paths, paths)
        logger.debug("Syncing %d file(s)", len(files))

        results: list[SyncOutcome] = []
        for path in files:
            results.append(await self.sync_file(path))

        return SyncReport(
            results=results,
            dry_run=self.config.dry_run,
            started_at=started_at,
            completed_at=_now(),
        )

    async def sync_file(self, path: Path | str) -> SyncOutcome:
        """Convert one file and reconcile it with Confluence.

        Confluence API errors become an ERRORED outcome carrying the
        error's help text. Everything else propagates.
        """
        file = str(path)
        text, _ = await read_file_async(Path(path))
        document = await convert_document(
            text, file, self.config, self.backend, self.registry
        )

        try:
            return await self._reconcile(file, document)
        except ConfluenceApiError as e:
            help_text = e.help_text()
            logger.error("Error syncing %s:\n%s", file, help_text)
            return SyncOutcome(
                file=file,
                title=document.title,
                page_id=document.page_id or "",
                action=SyncAction.ERRORED,
                error=help_text,
            )

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def find_existing(
        self, document: ConvertedDocument
    ) -> RemoteDocument | None:
        """Fetch the page *document* maps to, or None if there is none.

        An explicit page id that does not exist raises (404); only a title
        lookup can come back empty.
        """
        if document.page_id:
            return await run_sync(self.client.get_page, document.page_id)
        return await run_sync(
            self.client.get_page_by_title, self.config.space, document.title
        )

    async def _reconcile(
        self, file: str, document: ConvertedDocument
    ) -> SyncOutcome:
        existing = await self.find_existing(document)
        new_hash = content_hash(document.markup)

        if existing is not None:
            if content_hash(existing.body) == new_hash:
                logger.info("Skipped (no changes): %s", document.title)
                return self._outcome(file, document, existing, SyncAction.SKIPPED)

            if self.config.dry_run:
                logger.info("[DRY RUN] Would update: %s", document.title)
                return self._outcome(file, document, existing, SyncAction.UPDATED)

            page = await run_sync(
                self.client.update_page,
                existing.id,
                document.title,
                document.markup,
                existing.version,
            )
            action = SyncAction.UPDATED
            logger.info("Updated: %s", document.title)
        else:
            if self.config.dry_run:
                logger.info("[DRY RUN] Would create: %s", document.title)
                return SyncOutcome(
                    file=file,
                    title=document.title,
                    page_id=NEW_PAGE_ID,
                    action=SyncAction.CREATED,
                )

            page = await run_sync(
                self.client.create_page,
                self.config.space,
                document.title,
                document.markup,
                self.config.parent_page_id,
            )
            action = SyncAction.CREATED
            logger.info("Created: %s", document.title)

        if document.attachments:
            await self.sync_attachments(page.id, document.attachments)

        return self._outcome(file, document, page, action)

    async def sync_attachments(
        self, page_id: str, attachments: dict[str, AttachmentInfo]
    ) -> None:
        """Upload *attachments* to a page, matching existing ones by filename.

        An attachment whose filename already exists on the page gets new
        data under its existing id; any other is uploaded fresh.
        """
        existing = await run_sync(self.client.get_attachments, page_id)
        by_title = {a.title: a for a in existing}

        for filename, info in attachments.items():
            current = by_title.get(filename)
            if current is not None:
                await run_sync(
                    self.client.update_attachment,
                    page_id,
                    current.id,
                    filename,
                    info.data,
                    info.content_type,
                )
                logger.info("  Updated attachment: %s", filename)
            else:
                await run_sync(
                    self.client.upload_attachment,
                    page_id,
                    filename,
                    info.data,
                    info.content_type,
                )
                logger.info("  Uploaded attachment: %s", filename)

    def _outcome(
        self,
        file: str,
        document: ConvertedDocument,
        page: RemoteDocument,
        action: SyncAction,
    ) -> SyncOutcome:
        return SyncOutcome(
            file=file,
            title=document.title,
            page_id=page.id,
            url=page.web_url(self.config.domain),
            action=action,
        )
