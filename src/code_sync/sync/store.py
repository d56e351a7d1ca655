"""Remote document store capability.

The reconciler depends only on ``DocumentStore``: three operations keyed
by document name.  ``InMemoryDocumentStore`` implements it with a dict
and records every call, which makes it the standard fake in tests.
"""

from __future__ import annotations

import uuid
from typing import Any, Protocol, runtime_checkable

from .models import RemoteDocument


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for the remote collection the engine mirrors into."""

    def upsert_by_name(self, name: str, fields: dict[str, Any]) -> None:
        """Atomically create or update the document named *name*.

        Raises:
            StoreError: If the write was not confirmed.
        """
        ...

    def list_all_names(self) -> list[str]:
        """Return the names of every document in the collection."""
        ...

    def delete_by_name(self, name: str) -> None:
        """Delete the document named *name*.  No-op if absent."""
        ...


class InMemoryDocumentStore:
    """Dict-backed ``DocumentStore``.

    Args:
        collection: Collection name, informational only.

    Attributes:
        calls: Log of ``(operation, name)`` tuples in call order;
            ``list_all_names`` is logged with ``name=None``.
    """

    def __init__(self, collection: str = "default") -> None:
        self.collection = collection
        self._documents: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str | None]] = []

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    def upsert_by_name(self, name: str, fields: dict[str, Any]) -> None:
        self.calls.append(("upsert", name))
        doc = self._documents.get(name)
        if doc is None:
            doc = {"_id": uuid.uuid4().hex, "name": name}
            self._documents[name] = doc
        doc.update(fields)

    def list_all_names(self) -> list[str]:
        self.calls.append(("list", None))
        return list(self._documents)

    def delete_by_name(self, name: str) -> None:
        self.calls.append(("delete", name))
        self._documents.pop(name, None)

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def get(self, name: str) -> RemoteDocument | None:
        """Return the document named *name*, or ``None``."""
        doc = self._documents.get(name)
        if doc is None:
            return None
        return RemoteDocument(
            id=doc["_id"],
            name=doc["name"],
            content=doc.get("content", ""),
            last_synced=doc.get("last_synced", ""),
            hash=doc.get("hash", ""),
        )

    def names(self) -> set[str]:
        """Return the current document names without logging a call."""
        return set(self._documents)

    def calls_of(self, operation: str) -> list[str | None]:
        """Return the names passed to *operation* (``upsert``/``delete``/``list``)."""
        return [name for op, name in self.calls if op == operation]

    def reset_calls(self) -> None:
        """Clear the call log."""
        self.calls.clear()

    def __len__(self) -> int:
        return len(self._documents)
