"""One-way mirror of a local file tree into a document collection.

Public API for change detection and reconciliation.

Architecture
------------
Each cycle walks the tree, fingerprints every file and compares the
fingerprints with an in-memory **Change Cache** of what was last
confirmed written.  Only new or modified files are upserted; documents
whose path was not observed by the scan are deleted.  Unchanged files
cost no remote call, so a quiet tree produces a single ``list`` call per
cycle.

Modules:

- ``engine``      -- ``SyncEngine``: one cycle, and the fixed-delay loop.
- ``reconciler``  -- ``Reconciler``: selection, write and deletion phases.
- ``walker``      -- ``walk_tree`` / ``scan_tree``: eligible files.
- ``fingerprint`` -- ``fingerprint``: SHA-256 of file bytes.
- ``cache``       -- ``ChangeCache``: path -> fingerprint.
- ``store``       -- ``DocumentStore`` protocol, ``InMemoryDocumentStore``.
- ``mongo``       -- ``MongoDocumentStore``.
- ``retry``       -- ``RetryPolicy``, ``call_with_retry``.
- ``clock``       -- ``Clock`` protocol, ``SystemClock``.
- ``models``      -- ``FileRecord``, ``ScanResult``, ``RemoteDocument``,
  ``SyncAction``, ``SyncResult``, ``CycleReport``.
- ``reporter``    -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from code_sync.sync import InMemoryDocumentStore, SyncEngine
    from code_sync.sync import format_cycle_report

    store = InMemoryDocumentStore("my-project")
    engine = SyncEngine(store, root="./src", collection="my-project")

    report = engine.run_cycle()
    print(format_cycle_report(report))

    engine.run_forever(interval=30)
"""

from .cache import ChangeCache
from .clock import Clock, SystemClock
from .engine import SyncEngine
from .fingerprint import fingerprint
from .models import (
    CycleReport,
    FileRecord,
    RemoteDocument,
    ScanResult,
    SyncAction,
    SyncResult,
)
from .reconciler import Reconciler, Selection
from .reporter import (
    format_cycle_report,
    format_dry_run_preview,
    report_to_json,
)
from .retry import RetryPolicy, call_with_retry
from .store import DocumentStore, InMemoryDocumentStore
from .walker import DEFAULT_IGNORED, scan_tree, walk_tree

__all__ = [
    "DEFAULT_IGNORED",
    "ChangeCache",
    "Clock",
    "CycleReport",
    "DocumentStore",
    "FileRecord",
    "InMemoryDocumentStore",
    "Reconciler",
    "RemoteDocument",
    "RetryPolicy",
    "ScanResult",
    "Selection",
    "SyncAction",
    "SyncEngine",
    "SyncResult",
    "SystemClock",
    "call_with_retry",
    "fingerprint",
    "format_cycle_report",
    "format_dry_run_preview",
    "report_to_json",
    "scan_tree",
    "walk_tree",
]
