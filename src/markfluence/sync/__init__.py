"""Markdown to Confluence page sync engine.

Public API for pushing local Markdown files to Confluence pages.

Architecture
------------
Sync is one-way and stateless: every run re-derives the target page from
the file (explicit ``confluence-page-id`` front matter, or title lookup in
the configured space) and compares the MD5 of the freshly converted
storage format with the MD5 of the page's current body. Nothing is cached
between runs, so repeated runs over unchanged files only skip.

Modules:

- ``engine``    -- ``SyncEngine``: create/update/skip per file, plus
  attachment upload.
- ``models``    -- ``SyncAction``, ``SyncOutcome``, ``SyncReport``.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from markfluence.core.client import ConfluenceClient
    from markfluence.sync import SyncEngine, format_sync_report

    engine = SyncEngine(client=ConfluenceClient(config), config=config)
    report = await engine.run(["docs/"])
    print(format_sync_report(report))
"""

from .engine import SyncEngine, content_hash
from .models import SyncAction, SyncOutcome, SyncReport
from .reporter import format_sync_report, report_to_json

__all__ = [
    "SyncAction",
    "SyncEngine",
    "SyncOutcome",
    "SyncReport",
    "content_hash",
    "format_sync_report",
    "report_to_json",
]
