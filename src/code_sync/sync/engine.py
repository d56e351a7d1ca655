"""Core sync engine that drives the scan/reconcile cycle.

The ``SyncEngine`` ties together walker, reconciler and Change Cache.
One cycle:

1. Scans the root (read + fingerprint on a thread pool).
2. Reconciles the observations against the cache and the store.
3. Adopts the cache returned by the reconciler.

``run_forever`` repeats cycles with a fixed delay.  A transient store
failure aborts the current cycle only: the cache keeps every confirmed
write and the next scheduled cycle retries the rest.  A scan that cannot
list the root (for example a root removed while running) counts as a
failed cycle too.  Non-transient failures, or too many consecutive failed
cycles, propagate to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from code_sync.errors import CycleAbortedError, ScanError

from .cache import ChangeCache
from .clock import Clock, SystemClock
from .models import CycleReport
from .reconciler import Reconciler
from .retry import RetryPolicy
from .store import DocumentStore
from .walker import DEFAULT_IGNORED, canonical_root, scan_tree

logger = logging.getLogger(__name__)


class SyncEngine:
    """Mirror one directory into one collection.

    Args:
        store: Remote collection.
        root: Directory to mirror.
        collection: Collection name (used in reports).
        ignored: Path fragments excluded from the walk.
        clock: Time source and delay primitive.
        max_workers: Thread pool size for reading files.
        retry_policy: Retry limits for transient store errors.
        cache: Initial Change Cache (empty by default).
    """

    def __init__(
        self,
        store: DocumentStore,
        root: str | Path,
        collection: str,
        ignored: Iterable[str] = DEFAULT_IGNORED,
        *,
        clock: Clock | None = None,
        max_workers: int = 4,
        retry_policy: RetryPolicy | None = None,
        cache: ChangeCache | None = None,
    ) -> None:
        self.store = store
        self.root = canonical_root(root)
        self.collection = collection
        self.ignored = tuple(ignored)
        self.clock = clock or SystemClock()
        self.max_workers = max_workers
        self.reconciler = Reconciler(
            store, clock=self.clock, retry_policy=retry_policy
        )
        self._cache = cache if cache is not None else ChangeCache()
        self.cycles_run = 0

    @property
    def cache(self) -> ChangeCache:
        """The Change Cache as of the last completed (or aborted) cycle."""
        return self._cache

    # ------------------------------------------------------------------
    # Single cycle
    # ------------------------------------------------------------------

    def run_cycle(self, dry_run: bool = False) -> CycleReport:
        """Run one scan/reconcile cycle.

        Args:
            dry_run: If ``True``, report actions without writing.

        Returns:
            The cycle's ``CycleReport``.

        Raises:
            ScanError: The root vanished or could not be listed; nothing
                was sent to the store.
            CycleAbortedError: A store call failed; the engine has already
                adopted the cache of confirmed writes.
        """
        logger.info("Scanning directory: %s", self.root)
        self.cycles_run += 1
        scan = scan_tree(
            self.root,
            self.ignored,
            max_workers=self.max_workers,
            clock=self.clock,
        )
        try:
            report, next_cache = self.reconciler.reconcile(
                scan,
                self._cache,
                collection=self.collection,
                dry_run=dry_run,
            )
        except CycleAbortedError as exc:
            self._cache = exc.cache
            raise
        self._cache = next_cache
        return report

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run_forever(
        self,
        interval: float,
        *,
        max_cycles: int | None = None,
        max_consecutive_failures: int = 5,
        dry_run: bool = False,
        on_report: Callable[[CycleReport], None] | None = None,
    ) -> None:
        """Run cycles back to back, sleeping *interval* seconds in between.

        Args:
            interval: Delay between the end of one cycle and the start of
                the next, in seconds.
            max_cycles: Stop after this many cycles (``None`` = never).
            max_consecutive_failures: Transient failed cycles tolerated in
                a row before the last error is re-raised.
            dry_run: Passed to every cycle.
            on_report: Called with each successful cycle's report.

        Raises:
            CycleAbortedError: On a non-transient store failure, or when
                too many consecutive cycles have failed.
            ScanError: When too many consecutive scans have failed.
        """
        completed = 0
        failures = 0
        while max_cycles is None or completed < max_cycles:
            try:
                report = self.run_cycle(dry_run=dry_run)
            except (CycleAbortedError, ScanError) as exc:
                failures += 1
                if isinstance(exc, CycleAbortedError) and not exc.transient:
                    logger.error("Fatal store error: %s", exc.cause)
                    raise
                if failures > max_consecutive_failures:
                    logger.error(
                        "Giving up after %d consecutive failed cycles",
                        failures,
                    )
                    raise
                logger.warning(
                    "Cycle failed (%d/%d consecutive): %s",
                    failures,
                    max_consecutive_failures,
                    exc,
                )
            else:
                failures = 0
                if on_report is not None:
                    on_report(report)
            completed += 1

            if max_cycles is not None and completed >= max_cycles:
                break
            self.clock.sleep(interval)
