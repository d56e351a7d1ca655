"""Store lifespan management for daemon startup and shutdown."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

from .config import Config
from .errors import StoreUnavailableError
from .sync.mongo import MongoDocumentStore

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (keeps stdout for reports)."""
    print(msg, file=sys.stderr, flush=True)


def _redact(uri: str) -> str:
    """Hide the password part of a ``user:password@host`` URI."""
    scheme, sep, rest = uri.partition("://")
    if not sep or "@" not in rest:
        return uri
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


@contextmanager
def store_lifespan(config: Config) -> Iterator[MongoDocumentStore]:
    """
    Open the MongoDB collection for the duration of a run.

    On startup:
    - Create the client for ``config.mongodb_uri``
    - Ping the server and fail fast if it is unreachable
    - Ensure the unique index on ``name``

    On shutdown:
    - Close the client

    Args:
        config: Validated runtime configuration.

    Yields:
        The connected ``MongoDocumentStore``.

    Raises:
        StoreUnavailableError: If the store cannot be reached or prepared.
    """
    target = f"{config.database}.{config.project}"
    logger.info("Connecting to MongoDB at %s", _redact(config.mongodb_uri))
    _stderr_print(f"  Connecting to MongoDB ({target})...")

    store = MongoDocumentStore.connect(
        config.mongodb_uri,
        config.database,
        config.project,
        server_selection_timeout_ms=config.server_selection_timeout_ms,
    )
    try:
        store.ping()
        store.ensure_indexes()
    except StoreUnavailableError as e:
        store.close()
        logger.error("Failed to prepare MongoDB collection %s: %s", target, e)
        _stderr_print("ERROR: MongoDB connection failed.")
        _stderr_print(f"  {e}")
        _stderr_print("  Check MONGODB_URI and that the server is running.")
        raise

    logger.info("Connected to MongoDB collection %s", target)
    _stderr_print(f"  Connected to {target}")

    try:
        yield store
    finally:
        logger.info("Closing MongoDB connection")
        store.close()
