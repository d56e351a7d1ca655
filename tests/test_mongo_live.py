"""End-to-end sync against a real MongoDB server.

Run with ``pytest --run-live`` and MONGODB_URI pointing at a disposable
server.  Each test uses its own collection and drops it afterwards.
"""

import os
import uuid

import pytest

from code_sync.sync.engine import SyncEngine
from code_sync.sync.fingerprint import fingerprint
from code_sync.sync.mongo import MongoDocumentStore

pytestmark = pytest.mark.live


@pytest.fixture
def live_store():
    uri = os.getenv("MONGODB_URI")
    if not uri:
        pytest.skip("MONGODB_URI not set")
    name = f"code_sync_test_{uuid.uuid4().hex[:8]}"
    store = MongoDocumentStore.connect(uri, "code_sync_test", name)
    store.ping()
    store.ensure_indexes()
    yield store
    store._collection.drop()
    store.close()


def test_cycle_converges(live_store, sync_root, write_files):
    write_files(sync_root, {"a.txt": "alpha", "src/b.py": "print('b')\n"})
    engine = SyncEngine(live_store, sync_root, collection="live", ignored=())

    report = engine.run_cycle()
    assert len(report.upserted) == 2

    (sync_root / "a.txt").unlink()
    (sync_root / "src" / "b.py").write_text("print('B')\n")
    report = engine.run_cycle()

    assert [r.name for r in report.deleted] == ["a.txt"]
    assert sorted(live_store.list_all_names()) == ["src/b.py"]
    doc = live_store._collection.find_one({"name": "src/b.py"})
    assert doc["hash"] == fingerprint(b"print('B')\n")
    assert doc["content"] == "print('B')\n"
