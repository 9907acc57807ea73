"""Tests for DocumentStore implementations.

Tests the revision-checked write semantics across the memory and local
implementations to ensure they behave consistently.
"""

import threading

import pytest

from docupsert.store import get_store
from docupsert.store.base import ConflictError, NotFoundError, new_revision, revision_generation
from docupsert.store.local import LocalDocumentStore
from docupsert.store.memory import InMemoryDocumentStore


class TestDocumentStore:
    """Conditional write semantics shared by all stores."""

    def test_get_nonexistent(self, store):
        """Test getting a document that doesn't exist."""
        with pytest.raises(NotFoundError):
            store.get("nonexistent")

    def test_create_without_rev(self, store):
        """First write without a revision creates generation 1."""
        rev = store.put({"_id": "doc1", "value": 1})
        assert revision_generation(rev) == 1

        doc = store.get("doc1")
        assert doc == {"_id": "doc1", "value": 1, "_rev": rev}

    def test_create_twice_conflicts(self, store):
        """A second create (no revision) on an existing doc is a conflict."""
        store.put({"_id": "doc1", "value": 1})

        with pytest.raises(ConflictError):
            store.put({"_id": "doc1", "value": 2})

        assert store.get("doc1")["value"] == 1

    def test_rev_for_absent_doc_conflicts(self, store):
        """Writing with a revision when nothing is stored is a conflict."""
        with pytest.raises(ConflictError):
            store.put({"_id": "doc1", "_rev": "1-abc", "value": 1})

    def test_update_success(self, store):
        """Test successful update with the current revision."""
        rev1 = store.put({"_id": "doc1", "value": 1})
        rev2 = store.put({"_id": "doc1", "_rev": rev1, "value": 2})

        assert rev2 != rev1
        assert revision_generation(rev2) == 2
        assert store.get("doc1")["value"] == 2

    def test_update_stale_rev_conflicts(self, store):
        """Test update with stale revision."""
        rev1 = store.put({"_id": "doc1", "value": 1})
        store.put({"_id": "doc1", "_rev": rev1, "value": 2})

        with pytest.raises(ConflictError) as exc_info:
            store.put({"_id": "doc1", "_rev": rev1, "value": 3})

        assert exc_info.value.expected == rev1
        assert store.get("doc1")["value"] == 2

    def test_delete(self, store):
        """Test deletion at the current revision."""
        rev = store.put({"_id": "doc1", "value": 1})

        with pytest.raises(ConflictError):
            store.delete("doc1", "1-stale")

        store.delete("doc1", rev)
        with pytest.raises(NotFoundError):
            store.get("doc1")
        with pytest.raises(NotFoundError):
            store.delete("doc1", rev)

    def test_list_ids(self, store):
        """Test listing ids with prefix."""
        store.put({"_id": "users/1", "name": "a"})
        store.put({"_id": "users/2", "name": "b"})
        store.put({"_id": "orders/1", "total": 3})

        assert store.list_ids() == ["orders/1", "users/1", "users/2"]
        assert store.list_ids("users/") == ["users/1", "users/2"]
        assert store.list_ids("nope") == []

    def test_concurrent_creates_single_winner(self, store):
        """Only one of many racing creates is accepted."""
        accepted = []
        conflicts = []

        def create(worker_id: int):
            try:
                store.put({"_id": "shared", "worker": worker_id})
                accepted.append(worker_id)
            except ConflictError:
                conflicts.append(worker_id)

        threads = [threading.Thread(target=create, args=(i,)) for i in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(accepted) == 1
        assert len(conflicts) == 9
        assert store.get("shared")["worker"] == accepted[0]


class TestRevisions:
    """Revision helpers."""

    def test_generation_increments(self):
        rev1 = new_revision(None, {"a": 1})
        rev2 = new_revision(rev1, {"a": 2})
        assert revision_generation(rev1) == 1
        assert revision_generation(rev2) == 2

    def test_revision_ignores_rev_field(self):
        assert new_revision(None, {"a": 1, "_rev": "9-x"}) == new_revision(None, {"a": 1})

    def test_custom_rev_field_left_out_of_digest(self):
        assert new_revision(None, {"a": 1, "v": "9-x"}, "v") == new_revision(None, {"a": 1}, "v")
        # With a custom revision field, "_rev" is ordinary content
        assert new_revision(None, {"a": 1, "_rev": "9-x"}, "v") != new_revision(None, {"a": 1}, "v")

    @pytest.mark.parametrize("backend", ["memory", "local"])
    def test_store_hashes_with_its_own_rev_field(self, backend, tmp_path):
        if backend == "memory":
            store = InMemoryDocumentStore(rev_field="v")
        else:
            store = LocalDocumentStore(base_path=tmp_path, rev_field="v")

        rev = store.put({"_id": "doc1", "_rev": "content"})

        assert rev == new_revision(None, {"_id": "doc1", "_rev": "content"}, "v")
        assert store.get("doc1") == {"_id": "doc1", "_rev": "content", "v": rev}

    @pytest.mark.parametrize("rev", ["", "abc", "x-1", "-abc"])
    def test_malformed_revision(self, rev):
        with pytest.raises(ValueError, match="Malformed"):
            revision_generation(rev)


class TestInMemoryStore:
    """Tests specific to in-memory implementation."""

    def test_returns_copies(self, memory_store):
        """Mutating a returned document doesn't touch the store."""
        memory_store.put({"_id": "doc1", "tags": ["a"]})

        doc = memory_store.get("doc1")
        doc["tags"].append("b")

        assert memory_store.get("doc1")["tags"] == ["a"]

    def test_clear(self, memory_store):
        """Test clearing the store."""
        memory_store.put({"_id": "doc1"})
        memory_store.put({"_id": "doc2"})
        assert len(memory_store.list_ids()) == 2

        memory_store.clear()

        assert memory_store.list_ids() == []
        assert memory_store.reads == 0
        assert memory_store.writes == 0

    def test_custom_fields(self):
        store = InMemoryDocumentStore(id_field="id", rev_field="version")
        rev = store.put({"id": "doc1", "x": 1})
        assert store.get("doc1") == {"id": "doc1", "x": 1, "version": rev}


class TestLocalStore:
    """Tests specific to the local filesystem implementation."""

    @pytest.mark.parametrize("doc_id", ["../escape", "a/../../escape", "/etc/passwd"])
    def test_rejects_unsafe_ids(self, local_store, doc_id):
        with pytest.raises(ValueError, match="Invalid document id"):
            local_store.get(doc_id)

    @pytest.mark.parametrize("doc_id", ["a..b", "release..candidate/notes"])
    def test_dots_inside_ids_allowed(self, local_store, doc_id):
        rev = local_store.put({"_id": doc_id, "value": 1})

        assert local_store.get(doc_id) == {"_id": doc_id, "value": 1, "_rev": rev}
        assert local_store.list_ids() == [doc_id]

    def test_lock_file_kept_after_delete(self, local_store):
        rev = local_store.put({"_id": "doc1", "value": 1})
        local_store.delete("doc1", rev)

        assert (local_store.locks_path / "doc1.lock").exists()
        assert local_store.list_ids() == []

        recreated = local_store.put({"_id": "doc1", "value": 2})
        assert revision_generation(recreated) == 1
        assert local_store.get("doc1")["value"] == 2

    def test_writes_leave_no_temp_files(self, local_store):
        rev = local_store.put({"_id": "doc1", "value": 1})
        local_store.put({"_id": "doc1", "_rev": rev, "value": 2})

        assert sorted(p.name for p in local_store.docs_path.iterdir()) == ["doc1.json"]

    def test_persists_across_instances(self, tmp_path):
        """A second store over the same directory sees earlier writes."""
        first = LocalDocumentStore(base_path=tmp_path)
        rev = first.put({"_id": "doc1", "value": 1})

        second = LocalDocumentStore(base_path=tmp_path)
        assert second.get("doc1") == {"_id": "doc1", "value": 1, "_rev": rev}

        with pytest.raises(ConflictError):
            second.put({"_id": "doc1", "value": 2})

    def test_invalid_json(self, local_store):
        """Corrupt document files surface as errors, not as missing docs."""
        path = local_store.docs_path / "bad.json"
        path.write_text("not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            local_store.get("bad")


class TestGetStore:
    """Store factory."""

    def test_memory(self):
        assert isinstance(get_store("memory"), InMemoryDocumentStore)

    def test_local(self, tmp_path):
        store = get_store("local", base_path=tmp_path)
        assert isinstance(store, LocalDocumentStore)

    def test_auto_without_azure(self, tmp_path, monkeypatch):
        monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
        assert isinstance(get_store("auto", base_path=tmp_path), LocalDocumentStore)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            get_store("dynamo")
