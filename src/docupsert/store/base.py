"""Revisioned document store protocol for optimistic concurrency control.

This module provides a backend-agnostic interface for document storage with
revision-tagged conditional writes, enabling safe concurrent updates
without locks or leases.

Revisions follow the CouchDB shape ``"<generation>-<digest>"``. The
generation starts at 1 on the first accepted write and increases by one on
every accepted write after that.
"""

import hashlib
import json
from typing import Any, Protocol, runtime_checkable

ID_FIELD = "_id"
REV_FIELD = "_rev"


class NotFoundError(KeyError):
    """Raised by a store when the document id has no current document."""

    def __init__(self, doc_id: str):
        super().__init__(doc_id)
        self.doc_id = doc_id

    def __str__(self) -> str:
        return f"Document {self.doc_id} not found"


class ConflictError(Exception):
    """Raised by a store when a write carries a stale revision.

    This is a retry signal. The upsert loop consumes it and never
    lets it reach the caller.
    """

    def __init__(self, doc_id: str, expected: str | None, actual: str | None):
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Revision conflict on {doc_id}: write carried {expected}, store has {actual}"
        )


@runtime_checkable
class DocumentStore(Protocol):
    """Document storage with revision-checked writes.

    Implementations include:
    - InMemoryDocumentStore: thread-safe dict, for tests
    - LocalDocumentStore: JSON files on the local filesystem
    - AzureDocumentStore: Azure Blob Storage with ETags
    """

    def get(self, doc_id: str) -> dict[str, Any]:
        """Get the current document.

        Args:
            doc_id: Document identifier

        Returns:
            The stored document, including its id and revision fields.

        Raises:
            NotFoundError: If no document exists for ``doc_id``
        """
        ...

    def put(self, doc: dict[str, Any]) -> str:
        """Write a document if its revision matches the stored one.

        A document without a revision field is a create and only succeeds
        when nothing is stored under its id. A document with a revision
        field only succeeds when that revision is the current one.

        Args:
            doc: Document to write, carrying its id and expected revision

        Returns:
            The new revision.

        Raises:
            ConflictError: If the revision does not match the stored state
        """
        ...

    def delete(self, doc_id: str, rev: str) -> str:
        """Delete a document at a known revision.

        Raises:
            NotFoundError: If the document doesn't exist
            ConflictError: If ``rev`` is not the current revision
        """
        ...

    def list_ids(self, prefix: str = "") -> list[str]:
        """List document ids starting with ``prefix``."""
        ...


@runtime_checkable
class AsyncDocumentStore(Protocol):
    """Coroutine flavour of DocumentStore with identical semantics."""

    async def get(self, doc_id: str) -> dict[str, Any]:
        ...

    async def put(self, doc: dict[str, Any]) -> str:
        ...

    async def delete(self, doc_id: str, rev: str) -> str:
        ...

    async def list_ids(self, prefix: str = "") -> list[str]:
        ...


def new_revision(previous: str | None, body: dict[str, Any], rev_field: str = REV_FIELD) -> str:
    """Compute the revision for a write that replaces ``previous``.

    Args:
        previous: Revision being replaced, or None for a create
        body: Document content being written
        rev_field: Field holding the revision, left out of the digest

    Returns:
        Revision string ``"<generation>-<md5 hex>"``
    """
    generation = revision_generation(previous) + 1 if previous else 1
    content = {k: v for k, v in body.items() if k != rev_field}
    digest = hashlib.md5(
        json.dumps([previous, content], sort_keys=True, default=str).encode("utf-8")
    ).hexdigest()
    return f"{generation}-{digest}"


def revision_generation(rev: str) -> int:
    """Extract the generation number from a revision string.

    Raises:
        ValueError: If ``rev`` is not of the form ``"<int>-<digest>"``
    """
    head, sep, _ = rev.partition("-")
    if not sep or not head.isdigit():
        raise ValueError(f"Malformed revision: {rev!r}")
    return int(head)
