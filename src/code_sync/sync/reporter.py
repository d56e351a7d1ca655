"""Cycle report formatting functions.

Provides human-readable and machine-readable output for sync cycles:

- ``format_cycle_report`` -- full post-cycle summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict

from .models import CycleReport, SyncAction

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_cycle_report(report: CycleReport) -> str:
    """Format a complete cycle report as human-readable text.

    Sections are only included when they contain at least one result.
    Skipped paths are summarised by count only to avoid excessive output.

    Args:
        report: The completed cycle report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Sync report for '{report.collection}'"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Scanned {report.scanned} files: "
        f"{len(report.upserted)} upserted, "
        f"{len(report.deleted)} deleted, "
        f"{len(report.skipped)} unchanged, "
        f"{len(report.errors) + len(report.scan_errors)} errors"
    )
    lines.append("")

    if report.upserted:
        lines.append("Upserted:")
        for r in report.upserted:
            lines.append(f"  {r.name}")
        lines.append("")

    if report.deleted:
        lines.append("Deleted:")
        for r in report.deleted:
            lines.append(f"  {r.name}")
        lines.append("")

    if report.errors or report.scan_errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.name}: {r.error}")
        for path, message in report.scan_errors:
            lines.append(f"  {path}: {message}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: CycleReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``[ACTION] name``.

    Args:
        report: A dry-run cycle report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Collection: {report.collection}")
    lines.append("")

    groups: dict[SyncAction, list[str]] = defaultdict(list)
    for r in report.results:
        groups[r.action].append(r.name)

    for action in (SyncAction.UPSERT, SyncAction.DELETE):
        if action not in groups:
            continue
        lines.append(f"[{action.value.upper()}]")
        for name in groups[action]:
            lines.append(f"  {name}")
        lines.append("")

    if not report.has_changes:
        lines.append("No new or modified files to send.")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON
# ------------------------------------------------------------------


def report_to_json(report: CycleReport) -> dict:
    """Convert a cycle report into a JSON-serialisable dict.

    Args:
        report: The cycle report.

    Returns:
        Dict with ``collection``, ``dry_run``, timestamps, ``summary``
        counts and the ``upserted``/``deleted``/``errors`` name lists.
    """
    return {
        "collection": report.collection,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "summary": {
            "scanned": report.scanned,
            "upserted": len(report.upserted),
            "deleted": len(report.deleted),
            "skipped": len(report.skipped),
            "errors": len(report.errors) + len(report.scan_errors),
        },
        "upserted": [r.name for r in report.upserted],
        "deleted": [r.name for r in report.deleted],
        "errors": [
            {"name": r.name, "error": r.error} for r in report.errors
        ]
        + [
            {"name": path, "error": message}
            for path, message in report.scan_errors
        ],
    }
