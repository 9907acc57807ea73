"""docupsert - conflict-retrying upserts for revisioned document stores."""

from ._version import __version__
from .client import AsyncDocumentUpserter, DocumentUpserter
from .errors import DocUpsertError, InvalidIdError, StoreReadError, StoreWriteError
from .store import (
    AsyncDocumentStore,
    ConflictError,
    DocumentStore,
    InMemoryDocumentStore,
    LocalDocumentStore,
    NotFoundError,
    get_store,
)
from .upsert import (
    NO_CHANGE,
    UpsertResult,
    put_if_not_exists,
    put_if_not_exists_async,
    upsert,
    upsert_async,
)

__all__ = [
    "NO_CHANGE",
    "AsyncDocumentStore",
    "AsyncDocumentUpserter",
    "ConflictError",
    "DocUpsertError",
    "DocumentStore",
    "DocumentUpserter",
    "InMemoryDocumentStore",
    "InvalidIdError",
    "LocalDocumentStore",
    "NotFoundError",
    "StoreReadError",
    "StoreWriteError",
    "UpsertResult",
    "__version__",
    "get_store",
    "put_if_not_exists",
    "put_if_not_exists_async",
    "upsert",
    "upsert_async",
]
