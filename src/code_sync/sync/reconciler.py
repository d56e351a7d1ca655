"""Reconciler: decide and apply the minimal writes for one cycle.

Given the files observed by a scan and the Change Cache from the previous
cycle, the reconciler converges the remote collection onto the local tree:

1. **Selection** -- a file whose fingerprint equals its cached fingerprint
   is unchanged and costs no remote call.  Everything else goes into the
   write-set.
2. **Write phase** -- each file in the write-set is sent with one atomic
   upsert keyed by name.  Its cache entry is updated only after the store
   confirms the write.
3. **Deletion phase** -- once every write is confirmed, the full list of
   remote names is fetched and every name that was not observed by this
   scan is deleted.  Paths whose read failed this cycle are still on disk
   and are never deleted, nor is anything under a directory the scan could
   not list.  Each confirmed deletion removes its cache entry.

The order scan -> write -> delete is fixed: deletions are computed from the
complete scan, never from a partial one.

A store failure aborts the cycle with ``CycleAbortedError``.  The error
carries the next cache as it stood after the last confirmed call, so the
following cycle re-evaluates exactly the paths that were not confirmed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from code_sync.errors import CycleAbortedError, StoreError
from code_sync.file_handler import decode_content

from .cache import ChangeCache
from .clock import Clock, SystemClock
from .models import (
    CycleReport,
    FileRecord,
    ScanResult,
    SyncAction,
    SyncResult,
)
from .retry import RetryPolicy, call_with_retry
from .store import DocumentStore

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Split of the observed files into write-set and unchanged files."""

    to_write: list[FileRecord] = field(default_factory=list)
    unchanged: list[FileRecord] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Get a summary string."""
        return f"write={len(self.to_write)}, unchanged={len(self.unchanged)}"


class Reconciler:
    """Apply one cycle's observations to a ``DocumentStore``.

    Args:
        store: The remote collection.
        clock: Source of ``last_synced`` timestamps and retry delays.
        retry_policy: Retry limits for transient store errors.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Clock | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.retry_policy = retry_policy or RetryPolicy()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(
        self, records: Iterable[FileRecord], cache: ChangeCache
    ) -> Selection:
        """Partition *records* by comparing fingerprints with *cache*.

        Pure: neither the cache nor the store is touched.
        """
        selection = Selection()
        for record in records:
            if cache.get(record.relative_path) == record.fingerprint:
                selection.unchanged.append(record)
            else:
                selection.to_write.append(record)
        return selection

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def reconcile(
        self,
        scan: ScanResult,
        cache: ChangeCache,
        *,
        collection: str,
        dry_run: bool = False,
    ) -> tuple[CycleReport, ChangeCache]:
        """Converge the store onto *scan*.

        Args:
            scan: Files observed this cycle.
            cache: Change Cache from the previous cycle.  Not mutated.
            collection: Collection name, for the report.
            dry_run: If ``True``, compute actions (including the remote
                listing) but issue no upserts or deletes.

        Returns:
            ``(report, next_cache)``.  On a dry run *next_cache* is *cache*.

        Raises:
            CycleAbortedError: A store call failed after retries.
        """
        started_at = self.clock.now().isoformat()
        next_cache = cache.copy()
        results: list[SyncResult] = []

        selection = self.select(scan.records, cache)
        logger.debug("Selection: %s", selection.summary)
        for record in selection.unchanged:
            results.append(
                SyncResult(name=record.relative_path, action=SyncAction.SKIP)
            )

        observed = {record.relative_path for record in scan.records}
        keep = observed | scan.error_paths

        try:
            # Write phase
            for record in selection.to_write:
                if not dry_run:
                    self._upsert(record)
                    next_cache.put(record.relative_path, record.fingerprint)
                results.append(
                    SyncResult(
                        name=record.relative_path, action=SyncAction.UPSERT
                    )
                )

            # Deletion phase
            remote_names = set(
                self._call(self.store.list_all_names, "list names")
            )
            stale = remote_names - keep
            unseen = {name for name in stale if scan.is_unseen(name)}
            if unseen:
                logger.warning(
                    "Keeping %d documents under unlisted directories: %s",
                    len(unseen),
                    ", ".join(scan.unlisted_dirs),
                )
            for name in sorted(stale - unseen):
                if not dry_run:
                    self._call(
                        self.store.delete_by_name,
                        f"delete {name}",
                        name,
                    )
                    next_cache.remove(name)
                    logger.info("Deleted document for file: %s", name)
                results.append(
                    SyncResult(name=name, action=SyncAction.DELETE)
                )
        except StoreError as exc:
            logger.error("Cycle aborted: %s", exc)
            raise CycleAbortedError(
                f"Cycle aborted by store error: {exc}",
                cache=cache if dry_run else next_cache,
                cause=exc,
            ) from exc

        if not dry_run:
            self._settle_cache(next_cache, scan, observed, remote_names)

        report = CycleReport(
            collection=collection,
            dry_run=dry_run,
            scanned=len(scan.records),
            results=results,
            scan_errors=list(scan.errors),
            started_at=started_at,
            completed_at=self.clock.now().isoformat(),
        )
        logger.info("Cycle complete: %s", report.summary())
        return report, (cache if dry_run else next_cache)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _upsert(self, record: FileRecord) -> None:
        """Send one file as an upsert keyed by its relative path."""
        content, encoding = decode_content(record.content)
        fields: dict[str, Any] = {
            "content": content,
            "hash": record.fingerprint,
            "last_synced": self.clock.now().isoformat(),
        }
        self._call(
            self.store.upsert_by_name,
            f"upsert {record.relative_path}",
            record.relative_path,
            fields,
        )
        logger.info(
            "Updated or inserted document for file: %s (%s)",
            record.relative_path,
            encoding,
        )

    def _call(
        self, func: Callable[..., T], description: str, *args: Any
    ) -> T:
        return call_with_retry(
            func,
            *args,
            policy=self.retry_policy,
            sleep=self.clock.sleep,
            description=description,
        )

    @staticmethod
    def _settle_cache(
        cache: ChangeCache,
        scan: ScanResult,
        observed: set[str],
        remote_names: set[str],
    ) -> None:
        """Bring the cache key set in line with the local tree.

        * Paths gone from disk whose document was already absent remotely
          are dropped.  Unreadable paths and paths under unlisted
          directories keep their entry.
        * Observed paths cached as synced but missing from the remote
          listing were removed out-of-band; evicting them makes the next
          cycle upload them again.
        """
        keep = observed | scan.error_paths
        for path in cache.keys() - keep:
            if not scan.is_unseen(path):
                cache.remove(path)

        for path in sorted((cache.keys() & observed) - remote_names):
            logger.warning(
                "Document %s missing remotely; it will be re-uploaded", path
            )
            cache.remove(path)
