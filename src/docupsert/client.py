"""Calling-convention facades over the upsert loop.

Every method here delegates to :mod:`docupsert.upsert`; the facades only
decide how the result is delivered (return value, future, coroutine).
"""

import inspect
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Optional

from .store.aio import AsyncStoreAdapter
from .store.base import ID_FIELD, REV_FIELD, AsyncDocumentStore, DocumentStore
from .upsert import (
    Diff,
    UpsertResult,
    put_if_not_exists,
    put_if_not_exists_async,
    upsert,
    upsert_async,
)

DoneCallback = Callable[["Future[UpsertResult]"], Any]


class DocumentUpserter:
    """Upsert and create-if-absent bound to one document store.

    The store is injected; nothing is registered on it. Direct calls
    return an UpsertResult, ``submit_*`` calls return a Future and accept
    an optional callback run when the future settles.
    """

    def __init__(
        self,
        store: DocumentStore,
        executor: Optional[Executor] = None,
        id_field: str = ID_FIELD,
        rev_field: str = REV_FIELD,
    ):
        """Initialize upserter.

        Args:
            store: DocumentStore implementation (memory, local, Azure)
            executor: Executor for ``submit_*`` calls (default: private thread pool)
            id_field: Document field holding the id
            rev_field: Document field holding the revision
        """
        self.store = store
        self.id_field = id_field
        self.rev_field = rev_field
        self._executor = executor
        self._owns_executor = executor is None
        self._executor_lock = threading.Lock()

    @property
    def executor(self) -> Executor:
        """Executor for deferred calls, created on first use."""
        executor = self._executor
        if executor is None:
            with self._executor_lock:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(thread_name_prefix="docupsert")
                executor = self._executor
        return executor

    def get(self, doc_id: str) -> dict[str, Any]:
        """Read a document straight from the store."""
        return self.store.get(doc_id)

    def upsert(self, id_or_doc: str | Mapping[str, Any], diff: Diff | Mapping[str, Any]) -> UpsertResult:
        return upsert(self.store, id_or_doc, diff, self.id_field, self.rev_field)

    def put_if_not_exists(
        self, id_or_doc: str | Mapping[str, Any], fields: Mapping[str, Any] | None = None
    ) -> UpsertResult:
        return put_if_not_exists(self.store, id_or_doc, fields, self.id_field, self.rev_field)

    def submit_upsert(
        self,
        id_or_doc: str | Mapping[str, Any],
        diff: Diff | Mapping[str, Any],
        callback: Optional[DoneCallback] = None,
    ) -> "Future[UpsertResult]":
        """Run :meth:`upsert` in the executor and return its future."""
        future = self.executor.submit(self.upsert, id_or_doc, diff)
        if callback is not None:
            future.add_done_callback(callback)
        return future

    def submit_put_if_not_exists(
        self,
        id_or_doc: str | Mapping[str, Any],
        fields: Mapping[str, Any] | None = None,
        callback: Optional[DoneCallback] = None,
    ) -> "Future[UpsertResult]":
        """Run :meth:`put_if_not_exists` in the executor and return its future."""
        future = self.executor.submit(self.put_if_not_exists, id_or_doc, fields)
        if callback is not None:
            future.add_done_callback(callback)
        return future

    def close(self) -> None:
        """Shut down the private executor, if one was created."""
        if not self._owns_executor:
            return
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "DocumentUpserter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncDocumentUpserter:
    """Coroutine facade; wraps sync stores in an AsyncStoreAdapter."""

    def __init__(
        self,
        store: AsyncDocumentStore | DocumentStore,
        id_field: str = ID_FIELD,
        rev_field: str = REV_FIELD,
    ):
        if not inspect.iscoroutinefunction(getattr(store, "get", None)):
            store = AsyncStoreAdapter(store)
        self.store = store
        self.id_field = id_field
        self.rev_field = rev_field

    async def get(self, doc_id: str) -> dict[str, Any]:
        return await self.store.get(doc_id)

    async def upsert(
        self, id_or_doc: str | Mapping[str, Any], diff: Diff | Mapping[str, Any]
    ) -> UpsertResult:
        return await upsert_async(self.store, id_or_doc, diff, self.id_field, self.rev_field)

    async def put_if_not_exists(
        self, id_or_doc: str | Mapping[str, Any], fields: Mapping[str, Any] | None = None
    ) -> UpsertResult:
        return await put_if_not_exists_async(
            self.store, id_or_doc, fields, self.id_field, self.rev_field
        )

