"""Conflict-retrying upsert over a revisioned document store.

Handles the pattern of:
1. Read current document (or note that it is absent)
2. Apply a transformation to get the candidate document
3. Write it back tagged with the revision that was read
4. On a revision conflict, go back to 1

The loop has no attempt limit and no backoff. Every retry observes
strictly newer state, so transformations that are idempotent or narrowing
converge. Under sustained contention a caller may keep retrying.

Transformations receive a deep copy of the current document, or ``None``
when the document does not exist. They return the document to store, or
``None`` / ``False`` / ``NO_CHANGE`` to leave the store untouched.
"""

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import InvalidIdError, StoreReadError, StoreWriteError
from .store.base import (
    ID_FIELD,
    REV_FIELD,
    AsyncDocumentStore,
    ConflictError,
    DocumentStore,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class _NoChange:
    """Sentinel type for "leave the stored document as it is"."""

    def __repr__(self) -> str:
        return "NO_CHANGE"

    def __bool__(self) -> bool:
        return False


NO_CHANGE = _NoChange()

Diff = Callable[[Union[dict, None]], Any]


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert call.

    ``updated`` is False when the transformation declined to change the
    document; ``rev`` and ``doc`` then describe whatever was already stored
    (both None if nothing was).
    """

    id: str
    rev: str | None
    updated: bool
    doc: dict[str, Any] | None = None


def normalize_doc_id(id_or_doc: str | Mapping[str, Any], id_field: str = ID_FIELD) -> str:
    """Derive the document id from a direct id or a record's id field.

    Raises:
        InvalidIdError: If no non-empty string id can be found
    """
    if isinstance(id_or_doc, str):
        doc_id = id_or_doc
    elif isinstance(id_or_doc, Mapping):
        doc_id = id_or_doc.get(id_field)
    else:
        doc_id = None

    if not isinstance(doc_id, str) or not doc_id:
        raise InvalidIdError(f"Document {id_field} is required, got {id_or_doc!r}")
    return doc_id


def as_diff(diff_or_fields: Diff | Mapping[str, Any]) -> Diff:
    """Return a transformation, wrapping a plain mapping as a constant one."""
    if callable(diff_or_fields):
        return diff_or_fields
    if isinstance(diff_or_fields, Mapping):
        fields = dict(diff_or_fields)
        return lambda current: copy.deepcopy(fields)
    raise TypeError(
        f"Expected a transformation or a mapping, got {type(diff_or_fields).__name__}"
    )


def is_no_change(value: Any) -> bool:
    """True if a transformation result means "make no change"."""
    return value is None or value is False or value is NO_CHANGE


def _apply_diff(
    diff: Diff,
    doc_id: str,
    current: dict[str, Any] | None,
    id_field: str,
    rev_field: str,
) -> dict[str, Any] | None:
    """Run the transformation and tag its result for a conditional write.

    Returns None for a no-change decision. Errors raised by ``diff``
    propagate unchanged.
    """
    candidate = diff(copy.deepcopy(current))
    if is_no_change(candidate):
        return None
    if not isinstance(candidate, Mapping):
        raise TypeError(
            f"Transformation for {doc_id} returned {type(candidate).__name__}, expected a mapping"
        )

    candidate = dict(candidate)
    candidate[id_field] = doc_id
    if current is not None and current.get(rev_field) is not None:
        candidate[rev_field] = current[rev_field]
    else:
        candidate.pop(rev_field, None)
    return candidate


def _unchanged(doc_id: str, current: dict[str, Any] | None, rev_field: str) -> UpsertResult:
    logger.debug(f"No change requested for {doc_id}")
    rev = current.get(rev_field) if current is not None else None
    return UpsertResult(id=doc_id, rev=rev, updated=False, doc=current)


def _updated(doc_id: str, candidate: dict[str, Any], rev: str, attempt: int, rev_field: str) -> UpsertResult:
    logger.debug(f"Wrote {doc_id} at {rev} on attempt {attempt}")
    candidate[rev_field] = rev
    return UpsertResult(id=doc_id, rev=rev, updated=True, doc=candidate)


def upsert(
    store: DocumentStore,
    id_or_doc: str | Mapping[str, Any],
    diff: Diff | Mapping[str, Any],
    id_field: str = ID_FIELD,
    rev_field: str = REV_FIELD,
) -> UpsertResult:
    """Apply ``diff`` to a document, creating it if absent, retrying on conflict.

    Args:
        store: DocumentStore implementation
        id_or_doc: Document id, or a record carrying it in ``id_field``
        diff: Transformation from current document (or None) to the new one,
            or a mapping to store as-is
        id_field: Document field holding the id
        rev_field: Document field holding the revision

    Returns:
        UpsertResult describing the stored state after the call

    Raises:
        InvalidIdError: If no document id was supplied (store untouched)
        StoreReadError: If the read fails other than with "not found"
        StoreWriteError: If the write fails other than with a conflict
    """
    doc_id = normalize_doc_id(id_or_doc, id_field)
    diff = as_diff(diff)

    attempt = 0
    while True:
        attempt += 1

        try:
            current = store.get(doc_id)
        except NotFoundError:
            current = None
        except Exception as e:
            raise StoreReadError(f"Failed to read {doc_id}: {e}") from e

        candidate = _apply_diff(diff, doc_id, current, id_field, rev_field)
        if candidate is None:
            return _unchanged(doc_id, current, rev_field)

        try:
            rev = store.put(candidate)
        except ConflictError:
            logger.debug(f"Revision conflict on {doc_id}, attempt {attempt}, retrying")
            continue
        except Exception as e:
            raise StoreWriteError(f"Failed to write {doc_id}: {e}") from e

        return _updated(doc_id, candidate, rev, attempt, rev_field)


async def upsert_async(
    store: AsyncDocumentStore,
    id_or_doc: str | Mapping[str, Any],
    diff: Diff | Mapping[str, Any],
    id_field: str = ID_FIELD,
    rev_field: str = REV_FIELD,
) -> UpsertResult:
    """Coroutine version of :func:`upsert` over an AsyncDocumentStore.

    The only suspension points are the store read and the store write.
    """
    doc_id = normalize_doc_id(id_or_doc, id_field)
    diff = as_diff(diff)

    attempt = 0
    while True:
        attempt += 1

        try:
            current = await store.get(doc_id)
        except NotFoundError:
            current = None
        except Exception as e:
            raise StoreReadError(f"Failed to read {doc_id}: {e}") from e

        candidate = _apply_diff(diff, doc_id, current, id_field, rev_field)
        if candidate is None:
            return _unchanged(doc_id, current, rev_field)

        try:
            rev = await store.put(candidate)
        except ConflictError:
            logger.debug(f"Revision conflict on {doc_id}, attempt {attempt}, retrying")
            continue
        except Exception as e:
            raise StoreWriteError(f"Failed to write {doc_id}: {e}") from e

        return _updated(doc_id, candidate, rev, attempt, rev_field)


def _create_diff(
    id_or_doc: str | Mapping[str, Any],
    fields: Mapping[str, Any] | None,
    rev_field: str,
) -> Diff:
    """Transformation that only ever writes into an absent document."""
    if fields is None:
        fields = id_or_doc if isinstance(id_or_doc, Mapping) else {}
    initial = {k: v for k, v in fields.items() if k != rev_field}

    def diff(current: dict | None):
        if current is not None:
            return NO_CHANGE
        return copy.deepcopy(initial)

    return diff


def put_if_not_exists(
    store: DocumentStore,
    id_or_doc: str | Mapping[str, Any],
    fields: Mapping[str, Any] | None = None,
    id_field: str = ID_FIELD,
    rev_field: str = REV_FIELD,
) -> UpsertResult:
    """Create a document only if no version of it exists.

    Accepts either a full record (``{"_id": "foo", "hey": "yo"}``) or an id
    plus its initial fields. The first writer wins; everyone else gets
    ``updated=False`` and the document that won.
    """
    doc_id = normalize_doc_id(id_or_doc, id_field)
    result = upsert(store, doc_id, _create_diff(id_or_doc, fields, rev_field), id_field, rev_field)
    if result.updated:
        logger.info(f"Created document {doc_id}")
    return result


async def put_if_not_exists_async(
    store: AsyncDocumentStore,
    id_or_doc: str | Mapping[str, Any],
    fields: Mapping[str, Any] | None = None,
    id_field: str = ID_FIELD,
    rev_field: str = REV_FIELD,
) -> UpsertResult:
    """Coroutine version of :func:`put_if_not_exists`."""
    doc_id = normalize_doc_id(id_or_doc, id_field)
    result = await upsert_async(
        store, doc_id, _create_diff(id_or_doc, fields, rev_field), id_field, rev_field
    )
    if result.updated:
        logger.info(f"Created document {doc_id}")
    return result
