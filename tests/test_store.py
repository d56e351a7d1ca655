"""Tests for the DocumentStore protocol and InMemoryDocumentStore."""

from code_sync.sync.store import DocumentStore, InMemoryDocumentStore


class TestInMemoryDocumentStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryDocumentStore(), DocumentStore)

    def test_upsert_creates_then_updates(self):
        store = InMemoryDocumentStore()
        store.upsert_by_name("a.txt", {"content": "v1", "hash": "h1", "last_synced": "t1"})
        first_id = store.get("a.txt").id

        store.upsert_by_name("a.txt", {"content": "v2", "hash": "h2", "last_synced": "t2"})

        doc = store.get("a.txt")
        assert len(store) == 1
        assert doc.id == first_id
        assert (doc.name, doc.content, doc.hash, doc.last_synced) == ("a.txt", "v2", "h2", "t2")

    def test_list_and_delete(self):
        store = InMemoryDocumentStore()
        store.upsert_by_name("a.txt", {})
        store.upsert_by_name("b.txt", {})

        store.delete_by_name("a.txt")
        store.delete_by_name("missing.txt")

        assert store.list_all_names() == ["b.txt"]
        assert store.get("a.txt") is None

    def test_call_log(self):
        store = InMemoryDocumentStore()
        store.upsert_by_name("a.txt", {})
        store.list_all_names()
        store.delete_by_name("a.txt")

        assert store.calls == [("upsert", "a.txt"), ("list", None), ("delete", "a.txt")]
        assert store.calls_of("upsert") == ["a.txt"]

        store.names()
        store.reset_calls()
        assert store.calls == []
