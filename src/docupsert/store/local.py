"""Local filesystem implementation of DocumentStore.

Each document is a JSON file. Conditional writes are serialised per
document with an ``fcntl`` lock file so that several processes sharing
the same directory still get compare-and-swap semantics.
"""

import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .base import ID_FIELD, REV_FIELD, ConflictError, NotFoundError, new_revision

logger = logging.getLogger(__name__)

DOC_SUFFIX = ".json"


class LocalDocumentStore:
    """Local filesystem document store.

    Useful for:
    - Development and testing
    - Single-host deployments sharing a directory between processes

    Lock files under ``locks/`` outlive their documents. Removing one while
    another process waits on it would let the next writer lock a fresh
    inode and run alongside the waiter.
    """

    def __init__(
        self,
        base_path: str | Path = "/tmp/docupsert",
        id_field: str = ID_FIELD,
        rev_field: str = REV_FIELD,
    ):
        """Initialize local store.

        Args:
            base_path: Base directory for documents and lock files
            id_field: Document field holding the id
            rev_field: Document field holding the revision
        """
        self.base_path = Path(base_path)
        self.docs_path = self.base_path / "docs"
        self.locks_path = self.base_path / "locks"
        self.docs_path.mkdir(parents=True, exist_ok=True)
        self.locks_path.mkdir(parents=True, exist_ok=True)
        self.id_field = id_field
        self.rev_field = rev_field
        logger.info(f"Initialized local document store at: {self.base_path}")

    def _check_id(self, doc_id: str) -> None:
        # Ids map onto paths, so no traversal out of the base directory
        if not doc_id or ".." in Path(doc_id).parts or Path(doc_id).is_absolute():
            raise ValueError(f"Invalid document id: {doc_id}")

    def _doc_path(self, doc_id: str) -> Path:
        self._check_id(doc_id)
        return self.docs_path / f"{doc_id}{DOC_SUFFIX}"

    def _write_file(self, path: Path, doc: dict[str, Any]) -> None:
        """Replace ``path`` in one rename so readers never see half a document."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(json.dumps(doc, indent=2).encode("utf-8"))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @contextmanager
    def _locked(self, doc_id: str) -> Iterator[None]:
        """Hold the exclusive lock for one document."""
        self._check_id(doc_id)
        lock_file = self.locks_path / f"{doc_id}.lock"
        lock_file.parent.mkdir(parents=True, exist_ok=True)
        lock_file.touch()

        with open(lock_file, "r+") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _read(self, doc_id: str) -> dict[str, Any] | None:
        try:
            data = self._doc_path(doc_id).read_bytes()
        except FileNotFoundError:
            return None
        try:
            return json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid JSON in document {doc_id}: {e}")

    def get(self, doc_id: str) -> dict[str, Any]:
        """Load current document."""
        doc = self._read(doc_id)
        if doc is None:
            raise NotFoundError(doc_id)
        logger.debug(f"Loaded {doc_id} at {doc.get(self.rev_field)}")
        return doc

    def put(self, doc: dict[str, Any]) -> str:
        """Write document if revision matches, under the document lock."""
        doc_id = doc[self.id_field]
        expected = doc.get(self.rev_field)

        with self._locked(doc_id):
            current = self._read(doc_id)
            actual = current.get(self.rev_field) if current is not None else None
            if expected != actual:
                logger.debug(f"Revision conflict on {doc_id}: {expected} != {actual}")
                raise ConflictError(doc_id, expected, actual)

            rev = new_revision(actual, doc, self.rev_field)
            stored = dict(doc)
            stored[self.rev_field] = rev
            self._write_file(self._doc_path(doc_id), stored)

        logger.debug(f"Saved {doc_id} at {rev}")
        return rev

    def delete(self, doc_id: str, rev: str) -> str:
        """Delete document file."""
        with self._locked(doc_id):
            current = self._read(doc_id)
            if current is None:
                raise NotFoundError(doc_id)
            if current.get(self.rev_field) != rev:
                raise ConflictError(doc_id, rev, current.get(self.rev_field))
            self._doc_path(doc_id).unlink()

        logger.debug(f"Deleted document: {doc_id}")
        return new_revision(rev, {"_deleted": True}, self.rev_field)

    def list_ids(self, prefix: str = "") -> list[str]:
        """List document ids with given prefix."""
        ids = []
        for path in self.docs_path.rglob(f"*{DOC_SUFFIX}"):
            doc_id = str(path.relative_to(self.docs_path))[: -len(DOC_SUFFIX)]
            if doc_id.startswith(prefix):
                ids.append(doc_id)
        return sorted(ids)
