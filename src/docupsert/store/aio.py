"""Async adapter over a synchronous DocumentStore."""

import asyncio
from typing import Any

from .base import DocumentStore


class AsyncStoreAdapter:
    """Expose a sync DocumentStore as an AsyncDocumentStore.

    Each call runs in the default thread pool so that blocking backends
    (local files, Azure SDK) don't stall the event loop.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, doc_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.store.get, doc_id)

    async def put(self, doc: dict[str, Any]) -> str:
        return await asyncio.to_thread(self.store.put, doc)

    async def delete(self, doc_id: str, rev: str) -> str:
        return await asyncio.to_thread(self.store.delete, doc_id, rev)

    async def list_ids(self, prefix: str = "") -> list[str]:
        return await asyncio.to_thread(self.store.list_ids, prefix)
