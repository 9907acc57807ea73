"""In-memory implementation of DocumentStore for testing.

This provides a thread-safe, in-memory implementation that mimics
the revision-checked writes of a CouchDB-style document store.
"""

import copy
import threading
from typing import Any

from .base import ID_FIELD, REV_FIELD, ConflictError, NotFoundError, new_revision


class InMemoryDocumentStore:
    """In-memory document storage for testing.

    This implementation is thread-safe and provides the same conditional
    write semantics as a real store, making it perfect for unit tests.
    Documents are copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self, id_field: str = ID_FIELD, rev_field: str = REV_FIELD):
        """Initialize empty store with thread safety."""
        self.id_field = id_field
        self.rev_field = rev_field
        self._docs: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.reads = 0
        self.writes = 0

    def get(self, doc_id: str) -> dict[str, Any]:
        """Get current document."""
        with self._lock:
            self.reads += 1
            if doc_id not in self._docs:
                raise NotFoundError(doc_id)
            return copy.deepcopy(self._docs[doc_id])

    def put(self, doc: dict[str, Any]) -> str:
        """Write if revision matches."""
        doc_id = doc[self.id_field]
        expected = doc.get(self.rev_field)
        with self._lock:
            self.writes += 1
            current = self._docs.get(doc_id)
            actual = current[self.rev_field] if current is not None else None

            # Covers both "rev for an absent doc" and "no rev for an existing doc"
            if expected != actual:
                raise ConflictError(doc_id, expected, actual)

            rev = new_revision(actual, doc, self.rev_field)
            stored = copy.deepcopy(doc)
            stored[self.rev_field] = rev
            self._docs[doc_id] = stored
            return rev

    def delete(self, doc_id: str, rev: str) -> str:
        """Delete a document."""
        with self._lock:
            current = self._docs.get(doc_id)
            if current is None:
                raise NotFoundError(doc_id)
            if current[self.rev_field] != rev:
                raise ConflictError(doc_id, rev, current[self.rev_field])

            del self._docs[doc_id]
            return new_revision(rev, {"_deleted": True}, self.rev_field)

    def list_ids(self, prefix: str = "") -> list[str]:
        """List ids with prefix."""
        with self._lock:
            return sorted(doc_id for doc_id in self._docs if doc_id.startswith(prefix))

    def clear(self) -> None:
        """Clear all data (useful for tests)."""
        with self._lock:
            self._docs.clear()
            self.reads = 0
            self.writes = 0
