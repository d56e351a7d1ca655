"""Tests for cycle report formatting."""

import json
import typing

from code_sync.sync.models import CycleReport, SyncAction, SyncResult
from code_sync.sync.reporter import (
    format_cycle_report,
    format_dry_run_preview,
    report_to_json,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_report(
    upserted=(), deleted=(), skipped=(), scan_errors=(), dry_run=False
) -> CycleReport:
    results = (
        [SyncResult(name=n, action=SyncAction.UPSERT) for n in upserted]
        + [SyncResult(name=n, action=SyncAction.DELETE) for n in deleted]
        + [SyncResult(name=n, action=SyncAction.SKIP) for n in skipped]
    )
    return CycleReport(
        collection="demo",
        dry_run=dry_run,
        scanned=len(upserted) + len(skipped),
        results=results,
        scan_errors=list(scan_errors),
        started_at="2026-01-01T00:00:00+00:00",
        completed_at="2026-01-01T00:00:02+00:00",
    )


# ---------------------------------------------------------------------------
# CycleReport
# ---------------------------------------------------------------------------


class TestCycleReport:
    def test_summary(self):
        report = _make_report(upserted=["a"], deleted=["b"], skipped=["c", "d"])
        assert report.summary() == (
            "scanned 3, upserted 1, skipped 2, deleted 1, errors 0"
        )

    def test_summary_dry_run(self):
        assert _make_report(dry_run=True).summary().endswith("(dry run)")

    def test_has_changes(self):
        assert not _make_report(skipped=["a"]).has_changes
        assert _make_report(deleted=["a"]).has_changes

    def test_failed_results_counted_as_errors(self):
        report = CycleReport(
            collection="demo",
            results=[
                SyncResult(
                    name="a", action=SyncAction.UPSERT, success=False, error="boom"
                )
            ],
            started_at="t",
        )
        assert [r.name for r in report.errors] == ["a"]


# ---------------------------------------------------------------------------
# format_cycle_report
# ---------------------------------------------------------------------------


class TestFormatCycleReport:
    def test_full_report(self):
        text = format_cycle_report(
            _make_report(
                upserted=["src/a.py"],
                deleted=["old.txt"],
                skipped=["b.txt"],
                scan_errors=[("locked.txt", "Permission denied")],
            )
        )

        assert text.startswith("Sync report for 'demo'")
        assert "Started: 2026-01-01T00:00:00+00:00" in text
        assert "Completed: 2026-01-01T00:00:02+00:00" in text
        assert "Scanned 2 files: 1 upserted, 1 deleted, 1 unchanged, 1 errors" in text
        assert "Upserted:\n  src/a.py" in text
        assert "Deleted:\n  old.txt" in text
        assert "Errors:\n  locked.txt: Permission denied" in text
        assert "b.txt" not in text

    def test_empty_sections_omitted(self):
        text = format_cycle_report(_make_report(skipped=["a"]))
        assert "Upserted:" not in text
        assert "Deleted:" not in text
        assert "Errors:" not in text
        assert not text.endswith("\n")

    def test_dry_run_header(self):
        text = format_cycle_report(_make_report(dry_run=True))
        assert text.splitlines()[0] == "Sync report for 'demo' (DRY RUN)"

    def test_annotations_resolve_at_runtime(self):
        hints = typing.get_type_hints(format_cycle_report)
        assert hints["report"] is CycleReport
        assert hints["return"] is str


# ---------------------------------------------------------------------------
# format_dry_run_preview
# ---------------------------------------------------------------------------


class TestFormatDryRunPreview:
    def test_grouped_actions(self):
        text = format_dry_run_preview(
            _make_report(upserted=["a", "b"], deleted=["c"], skipped=["d"], dry_run=True)
        )
        lines = text.splitlines()

        assert lines[0] == "DRY RUN -- No changes will be made"
        assert lines[1] == "Collection: demo"
        assert "[UPSERT]\n  a\n  b" in text
        assert "[DELETE]\n  c" in text
        assert "[SKIP]" not in text

    def test_no_changes(self):
        text = format_dry_run_preview(_make_report(skipped=["a"], dry_run=True))
        assert text.endswith("No new or modified files to send.")


# ---------------------------------------------------------------------------
# report_to_json
# ---------------------------------------------------------------------------


class TestReportToJson:
    def test_structure(self):
        data = report_to_json(
            _make_report(
                upserted=["a"],
                deleted=["b"],
                skipped=["c"],
                scan_errors=[("d", "Permission denied")],
            )
        )

        assert data["collection"] == "demo"
        assert data["dry_run"] is False
        assert data["summary"] == {
            "scanned": 2,
            "upserted": 1,
            "deleted": 1,
            "skipped": 1,
            "errors": 1,
        }
        assert data["upserted"] == ["a"]
        assert data["deleted"] == ["b"]
        assert data["errors"] == [{"name": "d", "error": "Permission denied"}]

    def test_serialisable(self):
        json.dumps(report_to_json(_make_report(upserted=["a"])))
