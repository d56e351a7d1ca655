"""MongoDB implementation of ``DocumentStore``.

Each mirrored file is one document ``{name, content, hash, last_synced}``
in a collection named after the project.  Writes are single
``update_one(..., upsert=True)`` calls filtered by ``name``, and a unique
index on ``name`` backs the one-document-per-path rule.

pymongo exceptions are translated into ``StoreError`` so the reconciler
never sees driver types:

* ``AutoReconnect`` (includes ``NotPrimaryError`` and
  ``ServerSelectionTimeoutError``), ``ConnectionFailure`` and
  ``NetworkTimeout`` are transient.
* Any other ``PyMongoError`` is not.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import (
    AutoReconnect,
    ConnectionFailure,
    NetworkTimeout,
    PyMongoError,
)

from code_sync.errors import StoreError, StoreUnavailableError

T = TypeVar("T")
logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (AutoReconnect, ConnectionFailure, NetworkTimeout)

NAME_INDEX = "name_unique"


class MongoDocumentStore:
    """``DocumentStore`` backed by one MongoDB collection.

    Args:
        collection: The pymongo collection to mirror into.
        client: Owning client, closed by ``close()``.  Optional so tests
            can pass a bare (mocked) collection.
    """

    def __init__(
        self,
        collection: Collection,
        client: MongoClient | None = None,
    ) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def connect(
        cls,
        uri: str,
        database: str,
        collection: str,
        *,
        server_selection_timeout_ms: int = 5000,
    ) -> MongoDocumentStore:
        """Create a client for *uri* and bind to ``database.collection``.

        The client connects lazily; call ``ping()`` to verify reachability.

        Raises:
            StoreUnavailableError: If the URI cannot be parsed or the
                client cannot be created.
        """
        try:
            client: MongoClient = MongoClient(
                uri, serverSelectionTimeoutMS=server_selection_timeout_ms
            )
        except (PyMongoError, ValueError) as exc:
            raise StoreUnavailableError(
                f"Cannot create MongoDB client: {exc}"
            ) from exc
        return cls(client[database][collection], client=client)

    @property
    def name(self) -> str:
        """Fully qualified collection name (``database.collection``)."""
        return self._collection.full_name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> None:
        """Check that the server is reachable.

        Raises:
            StoreUnavailableError: If the ping fails.
        """
        try:
            self._collection.database.client.admin.command("ping")
        except PyMongoError as exc:
            raise StoreUnavailableError(
                f"Cannot reach MongoDB: {exc}"
            ) from exc

    def ensure_indexes(self) -> None:
        """Create the unique index on ``name`` if it does not exist.

        Raises:
            StoreUnavailableError: If the index cannot be created (for
                example because duplicate names already exist).
        """
        try:
            self._collection.create_index(
                [("name", ASCENDING)], unique=True, name=NAME_INDEX
            )
        except PyMongoError as exc:
            raise StoreUnavailableError(
                f"Cannot create unique index on {self.name}: {exc}"
            ) from exc

    def close(self) -> None:
        """Close the owning client, if any."""
        if self._client is not None:
            self._client.close()

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    def upsert_by_name(self, name: str, fields: dict[str, Any]) -> None:
        self._run(
            f"upsert {name}",
            self._collection.update_one,
            {"name": name},
            {"$set": dict(fields)},
            upsert=True,
        )

    def list_all_names(self) -> list[str]:
        def _fetch() -> list[str]:
            cursor = self._collection.find({}, {"name": 1, "_id": 0})
            return [
                doc["name"]
                for doc in cursor
                if isinstance(doc.get("name"), str)
            ]

        return self._run("list names", _fetch)

    def delete_by_name(self, name: str) -> None:
        self._run(
            f"delete {name}", self._collection.delete_one, {"name": name}
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _run(
        description: str, func: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """Call a pymongo method, translating driver errors."""
        try:
            return func(*args, **kwargs)
        except _TRANSIENT_ERRORS as exc:
            raise StoreError(
                f"MongoDB {description} failed: {exc}", transient=True
            ) from exc
        except PyMongoError as exc:
            raise StoreError(
                f"MongoDB {description} failed: {exc}", transient=False
            ) from exc
