"""Document store backends for docupsert."""

import logging
import os

from .aio import AsyncStoreAdapter
from .base import (
    ID_FIELD,
    REV_FIELD,
    AsyncDocumentStore,
    ConflictError,
    DocumentStore,
    NotFoundError,
    new_revision,
    revision_generation,
)
from .local import LocalDocumentStore
from .memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)


def get_store(backend: str = "auto", **kwargs) -> DocumentStore:
    """Factory function to get a document store backend.

    Args:
        backend: One of "auto", "memory", "local", "azure"
        **kwargs: Backend-specific configuration

    Returns:
        Document store instance

    Raises:
        ValueError: If backend is unknown

    Examples:
        >>> store = get_store("local", base_path="/tmp/docs")
        >>> store = get_store("azure", container="documents")
        >>> store = get_store("auto")
    """
    if backend == "auto":
        if os.environ.get("AZURE_STORAGE_CONNECTION_STRING"):
            logger.info("Detected Azure environment, using blob document store")
            backend = "azure"
        else:
            logger.info("No cloud environment detected, using local document store")
            backend = "local"

    if backend == "memory":
        return InMemoryDocumentStore(**kwargs)
    elif backend == "local":
        return LocalDocumentStore(**kwargs)
    elif backend == "azure":
        # Imported lazily so the Azure SDK is only loaded when used
        from .azure import AzureDocumentStore

        if not kwargs.get("connection_string"):
            kwargs["connection_string"] = os.environ.get("AZURE_STORAGE_CONNECTION_STRING")
        return AzureDocumentStore(**kwargs)
    else:
        raise ValueError(f"Unknown store backend: {backend}")


__all__ = [
    "ID_FIELD",
    "REV_FIELD",
    "AsyncDocumentStore",
    "AsyncStoreAdapter",
    "ConflictError",
    "DocumentStore",
    "InMemoryDocumentStore",
    "LocalDocumentStore",
    "NotFoundError",
    "get_store",
    "new_revision",
    "revision_generation",
]
