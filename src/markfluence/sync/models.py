"""Pydantic models for the page sync engine.

- ``SyncAction``: terminal state of one document's sync.
- ``SyncOutcome``: what happened to one Markdown file.
- ``SyncReport``: aggregate outcomes for a full run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SyncAction(str, Enum):
    """Terminal states of a document sync."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERRORED = "errored"


class SyncOutcome(BaseModel):
    """Result of syncing one Markdown file.

    In a dry run the action is the predicted one; ``page_id`` is ``"new"``
    for predicted creations.

    Attributes:
        file: Path of the Markdown file.
        title: Page title derived from the file.
        page_id: Confluence page id ("" if unknown).
        url: Browser URL of the page ("" if unknown).
        action: What was (or would be) done.
        error: Human-actionable explanation when ``action`` is ERRORED.
    """

    file: str
    title: str
    page_id: str = ""
    url: str = ""
    action: SyncAction
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Attributes:
        results: One outcome per input file, in processing order.
        dry_run: Whether this was a dry-run (no changes applied).
        started_at: ISO 8601 timestamp when sync started.
        completed_at: ISO 8601 timestamp when sync completed.
    """

    results: list[SyncOutcome] = []
    dry_run: bool = False
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with_action(self, action: SyncAction) -> list[SyncOutcome]:
        return [r for r in self.results if r.action == action]

    @property
    def created(self) -> list[SyncOutcome]:
        """Outcomes where action is CREATED."""
        return self._with_action(SyncAction.CREATED)

    @property
    def updated(self) -> list[SyncOutcome]:
        """Outcomes where action is UPDATED."""
        return self._with_action(SyncAction.UPDATED)

    @property
    def skipped(self) -> list[SyncOutcome]:
        """Outcomes where action is SKIPPED."""
        return self._with_action(SyncAction.SKIPPED)

    @property
    def errors(self) -> list[SyncOutcome]:
        """Outcomes where action is ERRORED."""
        return self._with_action(SyncAction.ERRORED)

    @property
    def changed(self) -> list[SyncOutcome]:
        """Created and updated outcomes, in processing order."""
        return [
            r
            for r in self.results
            if r.action in (SyncAction.CREATED, SyncAction.UPDATED)
        ]

    def summary(self) -> str:
        """One-line count of outcomes by action."""
        line = (
            f"Sync complete: {len(self.created)} created, "
            f"{len(self.updated)} updated, {len(self.skipped)} skipped"
        )
        if self.errors:
            line += f", {len(self.errors)} errored"
        if self.dry_run:
            line += " (dry run)"
        return line
