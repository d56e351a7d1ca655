"""Pydantic models for the sync engine.

Defines the data contracts shared across the sync modules:

- ``FileRecord``: one file observed during a scan.
- ``ScanResult``: everything a scan produced, including read failures.
- ``RemoteDocument``: one document in the remote collection.
- ``SyncAction``: Enum of possible per-path operations.
- ``SyncResult``: Outcome of reconciling one path.
- ``CycleReport``: Aggregate results for a full cycle.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class SyncAction(str, Enum):
    """Possible sync operations for a path."""

    SKIP = "skip"
    UPSERT = "upsert"
    DELETE = "delete"


class FileRecord(BaseModel):
    """A regular file observed during the current scan.

    Attributes:
        relative_path: POSIX-style path relative to the canonical root.
        content: Raw file bytes.
        fingerprint: SHA-256 hex digest of ``content``.
        observed_at: When the file was read.
    """

    relative_path: str
    content: bytes
    fingerprint: str
    observed_at: datetime

    model_config = {"frozen": True}


class ScanResult(BaseModel):
    """Output of one tree scan.

    Attributes:
        root: Canonical absolute path of the scanned root.
        records: Files read successfully.
        errors: ``(relative_path, message)`` pairs for files that matched
            the walk but could not be read, and for directories that could
            not be listed.
        unlisted_dirs: Relative paths of directories that could not be
            listed.  Their contents are unknown this scan.
    """

    root: str
    records: list[FileRecord] = []
    errors: list[tuple[str, str]] = []
    unlisted_dirs: list[str] = []

    model_config = {"frozen": True}

    @property
    def error_paths(self) -> set[str]:
        """Relative paths whose read failed this scan."""
        return {path for path, _ in self.errors}

    def is_unseen(self, name: str) -> bool:
        """True if *name* lies under a directory this scan could not list."""
        return any(
            name == prefix or name.startswith(prefix + "/")
            for prefix in self.unlisted_dirs
        )


class RemoteDocument(BaseModel):
    """A document in the remote collection.

    Attributes:
        id: Store-assigned identifier.
        name: Relative path of the mirrored file; unique per collection.
        content: Decoded file content.
        last_synced: ISO 8601 UTC timestamp of the last upsert.
        hash: Fingerprint of the file bytes at ``last_synced``.
    """

    id: str | None = None
    name: str
    content: str
    last_synced: str
    hash: str

    model_config = {"frozen": True}


class SyncResult(BaseModel):
    """Result of reconciling one path.

    Attributes:
        name: Relative path / document name.
        action: Sync action that was performed.
        success: Whether the operation succeeded.
        error: Error message if the operation failed.
    """

    name: str
    action: SyncAction
    success: bool = True
    error: str | None = None

    model_config = {"frozen": True}


class CycleReport(BaseModel):
    """Aggregate report for one sync cycle.

    Attributes:
        collection: Name of the remote collection.
        dry_run: Whether this was a dry run (no writes issued).
        scanned: Number of files read during the scan.
        results: Per-path results.
        scan_errors: ``(relative_path, message)`` pairs from the scan.
        started_at: ISO 8601 timestamp when the cycle started.
        completed_at: ISO 8601 timestamp when the cycle completed.
    """

    collection: str
    dry_run: bool = False
    scanned: int = 0
    results: list[SyncResult] = []
    scan_errors: list[tuple[str, str]] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def upserted(self) -> list[SyncResult]:
        """Results where action is UPSERT."""
        return [r for r in self.results if r.action == SyncAction.UPSERT]

    @property
    def deleted(self) -> list[SyncResult]:
        """Results where action is DELETE."""
        return [r for r in self.results if r.action == SyncAction.DELETE]

    @property
    def skipped(self) -> list[SyncResult]:
        """Results where action is SKIP."""
        return [r for r in self.results if r.action == SyncAction.SKIP]

    @property
    def errors(self) -> list[SyncResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def has_changes(self) -> bool:
        """True if the cycle upserted or deleted anything."""
        return bool(self.upserted or self.deleted)

    def summary(self) -> str:
        """Format a one-line summary of the cycle."""
        text = (
            f"scanned {self.scanned}, upserted {len(self.upserted)}, "
            f"skipped {len(self.skipped)}, deleted {len(self.deleted)}, "
            f"errors {len(self.errors) + len(self.scan_errors)}"
        )
        if self.dry_run:
            text += " (dry run)"
        return text
