"""In-memory Change Cache.

Maps each relative path to the fingerprint last confirmed written to the
remote store.  The cache is the only local state the engine keeps: it
starts empty at process start and is never persisted, so the first cycle
after a restart re-uploads every file (upserts are idempotent).

Key design choices:

* **Explicit ownership** -- a ``ChangeCache`` is passed into each
  reconciliation step and the step returns the next one; there is no
  module-level cache.
* **Confirmed entries only** -- ``put`` is called after a write succeeds
  and ``remove`` after a deletion succeeds, so a cycle aborted part-way
  leaves a cache that is still a true record of the remote side.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class ChangeCache:
    """Mapping of ``relative_path -> fingerprint``.

    Args:
        entries: Optional initial entries.
    """

    def __init__(
        self, entries: Iterable[tuple[str, str]] | None = None
    ) -> None:
        self._entries: dict[str, str] = dict(entries or ())

    # ------------------------------------------------------------------
    # Entry helpers
    # ------------------------------------------------------------------

    def get(self, path: str) -> str | None:
        """Return the cached fingerprint for *path*, or ``None``."""
        return self._entries.get(path)

    def put(self, path: str, fingerprint: str) -> None:
        """Record *fingerprint* as the synced state of *path*."""
        self._entries[path] = fingerprint

    def remove(self, path: str) -> None:
        """Drop *path* from the cache.  No-op if not present."""
        self._entries.pop(path, None)

    def keys(self) -> set[str]:
        """Return a snapshot of the cached paths."""
        return set(self._entries)

    def copy(self) -> ChangeCache:
        """Return an independent copy of this cache."""
        return ChangeCache(self._entries.items())

    def as_dict(self) -> dict[str, str]:
        """Return a plain dict copy of the entries."""
        return dict(self._entries)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeCache):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ChangeCache({len(self._entries)} entries)"
