"""Exception taxonomy for code-sync.

- ``SyncError``: base class for everything raised by the sync core.
- ``StoreError``: a document store call failed.  ``transient`` marks
  failures worth retrying (dropped connections, timeouts).
- ``StoreUnavailableError``: the store cannot be reached at startup.
- ``ScanError``: the sync root vanished or could not be listed; no
  deletions are computed from such a scan.
- ``CycleAbortedError``: a cycle stopped part-way through; carries the
  Change Cache as it stood after the last confirmed remote write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sync.cache import ChangeCache


class SyncError(Exception):
    """Base class for sync failures."""


class StoreError(SyncError):
    """A remote document store operation failed.

    Args:
        message: Human-readable description.
        transient: ``True`` if retrying the same call may succeed.
    """

    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.transient = transient


class StoreUnavailableError(StoreError):
    """The store could not be reached or initialised at startup."""


class ScanError(SyncError):
    """The sync root could not be scanned (missing, or not listable)."""


class CycleAbortedError(SyncError):
    """A sync cycle was aborted by a store failure.

    Args:
        message: Human-readable description.
        cache: Change Cache holding only confirmed writes and deletions.
        cause: The underlying ``StoreError``.
    """

    def __init__(
        self, message: str, *, cache: ChangeCache, cause: StoreError
    ) -> None:
        super().__init__(message)
        self.cache = cache
        self.cause = cause

    @property
    def transient(self) -> bool:
        """Whether the underlying store failure was transient."""
        return self.cause.transient
