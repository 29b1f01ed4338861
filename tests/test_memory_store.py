"""Tests for the in-memory document store"""

import threading

import pytest

from urbanfix.core.errors import ConflictError, NotFoundError
from urbanfix.services.storage.base import Sequence
from urbanfix.services.storage.memory_store import MemoryDocumentStore, generate_document_id


def test_generated_ids_look_like_firestore_ids():
    doc_id = generate_document_id()
    assert len(doc_id) == 20
    assert doc_id.isalnum()


def test_create_and_get(store):
    created = store.create("things", {"name": "a"})
    fetched = store.get("things", created["id"])
    assert fetched == created
    assert store.get("things", "missing") is None


def test_documents_are_copies(store):
    created = store.create("things", {"tags": ["a"]})
    created["tags"].append("b")
    assert store.get("things", created["id"])["tags"] == ["a"]


def test_sequence_starts_at_configured_value(store):
    sequence = Sequence("things", "number", 1000)
    first = store.create("things", {}, sequence=sequence)
    second = store.create("things", {}, sequence=sequence)
    assert (first["number"], second["number"]) == (1000, 1001)


def test_sequence_claim_conflict(store):
    sequence = Sequence("things", "number", 1000)
    store.create("things", {}, sequence=sequence)
    # Counter rolled back by hand while the claim remains
    store._collections["counters"]["things"] = {"value": 999}
    with pytest.raises(ConflictError):
        store.create("things", {}, sequence=sequence)


def test_concurrent_sequence_allocation_is_gap_free(store):
    sequence = Sequence("things", "number", 1000)
    numbers = []

    def worker():
        numbers.append(store.create("things", {}, sequence=sequence)["number"])

    threads = [threading.Thread(target=worker) for _ in range(25)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(numbers) == list(range(1000, 1025))


def test_mutate_applies_updates(store):
    created = store.create("things", {"count": 1})
    updated = store.mutate("things", created["id"], lambda doc: {"count": doc["count"] + 1})
    assert updated["count"] == 2
    assert store.get("things", created["id"])["count"] == 2


def test_mutate_missing_document(store):
    with pytest.raises(NotFoundError):
        store.mutate("things", "missing", lambda doc: {"x": 1})


def test_mutate_failure_writes_nothing(store):
    created = store.create("things", {"count": 1})

    def reject(doc):
        raise ConflictError("nope")

    with pytest.raises(ConflictError):
        store.mutate("things", created["id"], reject)
    assert store.get("things", created["id"])["count"] == 1


def test_query_and_delete(store):
    a = store.create("things", {"kind": "x"})
    store.create("things", {"kind": "y"})
    assert [doc["id"] for doc in store.query("things", {"kind": "x"})] == [a["id"]]
    assert len(store.query("things")) == 2

    assert store.delete("things", a["id"]) is True
    assert store.delete("things", a["id"]) is False


def test_ping():
    assert MemoryDocumentStore().ping()["database"] == "memory"
