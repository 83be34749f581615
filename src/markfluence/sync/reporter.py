"""Sync report formatting functions.

- ``format_sync_report`` -- human-readable post-sync summary.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    The summary line comes first, then every created or updated page with
    its URL, then any errors with their explanations. Skipped pages are
    counted only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = [report.summary()]

    if report.changed:
        lines.append("")
        for r in report.changed:
            label = r.action.value
            if report.dry_run:
                label = f"would be {label}"
            lines.append(f"  {label}: {r.title}")
            if r.url:
                lines.append(f"    {r.url}")

    if report.errors:
        lines.append("")
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.file}:")
            for detail in (r.error or "unknown error").splitlines():
                lines.append(f"    {detail}")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, and per-file details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "file": r.file,
            "title": r.title,
            "page_id": r.page_id,
            "url": r.url,
            "action": r.action.value,
        }
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "skipped": len(report.skipped),
            "errored": len(report.errors),
        },
        "results": results_list,
    }
