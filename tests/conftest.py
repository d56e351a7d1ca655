"""Shared pytest fixtures for code-sync tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

from code_sync.errors import StoreError
from code_sync.sync.store import InMemoryDocumentStore

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live MongoDB server (MONGODB_URI)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live MongoDB server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic clock: every ``now()`` advances one second and
    ``sleep()`` only records the requested delay."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


class FailingStore(InMemoryDocumentStore):
    """In-memory store that raises ``StoreError`` on scheduled calls.

    ``fail("upsert", "a.txt", times=2)`` makes the next two upserts of
    ``a.txt`` fail.  ``name=None`` matches any name and ``times=None``
    fails forever.  Every attempt, failed or not, lands in ``attempts``.
    """

    def __init__(self, collection: str = "default") -> None:
        super().__init__(collection)
        self._plans: list[list] = []
        self.attempts: list[tuple[str, str | None]] = []

    def fail(self, operation, name=None, *, times=1, transient=True):
        self._plans.append([operation, name, times, transient])

    def _check(self, operation, name):
        self.attempts.append((operation, name))
        for plan in self._plans:
            op, target, remaining, transient = plan
            if op != operation or (target is not None and target != name):
                continue
            if remaining is None:
                raise StoreError(
                    f"simulated {operation} failure", transient=transient
                )
            if remaining > 0:
                plan[2] -= 1
                raise StoreError(
                    f"simulated {operation} failure", transient=transient
                )

    def upsert_by_name(self, name, fields):
        self._check("upsert", name)
        super().upsert_by_name(name, fields)

    def list_all_names(self):
        self._check("list", None)
        return super().list_all_names()

    def delete_by_name(self, name):
        self._check("delete", name)
        super().delete_by_name(name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock():
    """A fresh FakeClock."""
    return FakeClock()


@pytest.fixture
def store():
    """An empty in-memory document store."""
    return InMemoryDocumentStore("test-project")


@pytest.fixture
def failing_store():
    """An empty in-memory store with scheduled failures."""
    return FailingStore("test-project")


@pytest.fixture
def sync_root(tmp_path_factory) -> Path:
    """An empty directory whose path is independent of the test name.

    Ignore fragments match against absolute paths, so the root must not
    inherit words like ``build`` from a test name.
    """
    return tmp_path_factory.mktemp("root")


@pytest.fixture
def write_files():
    """Return a helper that writes ``{relative_path: content}`` under a root."""

    def _write(root: Path, files: dict) -> None:
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")

    return _write
