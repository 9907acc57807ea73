"""Azure Blob Storage implementation of DocumentStore.

Each document is a JSON blob. The document revision is kept in blob
metadata and the blob ETag enforces the compare-and-swap, so a revision
check and the write that follows it can't be interleaved by another writer.
"""

import json
import logging
from typing import Any

from azure.core import MatchConditions
from azure.core.exceptions import (
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient

from .base import ID_FIELD, REV_FIELD, ConflictError, NotFoundError, new_revision

logger = logging.getLogger(__name__)

REV_METADATA_KEY = "rev"


class AzureDocumentStore:
    """Azure blob storage with ETags for conditional writes.

    ETags are HTTP standard (RFC 7232) entity tags that change
    whenever a blob is modified. Azure maintains them automatically,
    which is exactly what a revision check needs.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        container: str = "documents",
        client: BlobServiceClient | None = None,
        id_field: str = ID_FIELD,
        rev_field: str = REV_FIELD,
    ):
        """Initialize Azure document store.

        Args:
            connection_string: Azure Storage connection string
            container: Blob container name (created if doesn't exist)
            client: Pre-built service client, used instead of the connection string
            id_field: Document field holding the id
            rev_field: Document field holding the revision
        """
        if client is None:
            if not connection_string:
                raise ValueError("Either connection_string or client is required")
            client = BlobServiceClient.from_connection_string(connection_string)
        self.client = client
        self.container = container
        self.id_field = id_field
        self.rev_field = rev_field
        self._ensure_container()

    def _ensure_container(self) -> None:
        """Ensure the container exists."""
        try:
            container_client = self.client.get_container_client(self.container)
            if not container_client.exists():
                logger.info(f"Creating container: {self.container}")
                container_client.create_container()
        except ResourceExistsError:
            # Created concurrently by someone else
            pass

    def _blob_name(self, doc_id: str) -> str:
        return f"{doc_id}.json"

    def get(self, doc_id: str) -> dict[str, Any]:
        """Download document and attach its revision."""
        blob_client = self.client.get_blob_client(self.container, self._blob_name(doc_id))
        try:
            downloader = blob_client.download_blob()
            content = downloader.readall()
        except ResourceNotFoundError:
            raise NotFoundError(doc_id)
        except Exception as e:
            logger.error(f"Failed to get {doc_id}: {e}")
            raise

        doc = json.loads(content.decode("utf-8"))
        doc[self.rev_field] = downloader.properties.metadata[REV_METADATA_KEY]
        return doc

    def put(self, doc: dict[str, Any]) -> str:
        """Upload document if its revision is current.

        Creates use ``overwrite=False``; updates check the stored revision
        and then upload with ``if_match`` on the ETag read alongside it.
        """
        doc_id = doc[self.id_field]
        expected = doc.get(self.rev_field)
        blob_client = self.client.get_blob_client(self.container, self._blob_name(doc_id))

        body = {k: v for k, v in doc.items() if k != self.rev_field}
        data = json.dumps(body, indent=2).encode("utf-8")

        if expected is None:
            rev = new_revision(None, body, self.rev_field)
            try:
                blob_client.upload_blob(
                    data,
                    overwrite=False,
                    metadata={REV_METADATA_KEY: rev},
                    content_type="application/json",
                )
            except ResourceExistsError:
                logger.debug(f"Create conflict on {doc_id}: document already exists")
                raise ConflictError(doc_id, None, "<existing>")
            except Exception as e:
                logger.error(f"Failed to create {doc_id}: {e}")
                raise
            logger.debug(f"Created {doc_id} at {rev}")
            return rev

        try:
            props = blob_client.get_blob_properties()
        except ResourceNotFoundError:
            raise ConflictError(doc_id, expected, None)

        actual = props.metadata.get(REV_METADATA_KEY)
        if actual != expected:
            raise ConflictError(doc_id, expected, actual)

        rev = new_revision(actual, body, self.rev_field)
        try:
            blob_client.upload_blob(
                data,
                overwrite=True,
                metadata={REV_METADATA_KEY: rev},
                content_type="application/json",
                etag=props.etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except (ResourceModifiedError, ResourceNotFoundError):
            # Changed or deleted between the property read and the upload
            logger.debug(f"ETag conflict on {doc_id} (etag: {props.etag})")
            raise ConflictError(doc_id, expected, None)
        except Exception as e:
            logger.error(f"Failed to put {doc_id}: {e}")
            raise

        logger.debug(f"Updated {doc_id} to {rev}")
        return rev

    def delete(self, doc_id: str, rev: str) -> str:
        """Delete a blob at a known revision."""
        blob_client = self.client.get_blob_client(self.container, self._blob_name(doc_id))
        try:
            props = blob_client.get_blob_properties()
        except ResourceNotFoundError:
            raise NotFoundError(doc_id)

        actual = props.metadata.get(REV_METADATA_KEY)
        if actual != rev:
            raise ConflictError(doc_id, rev, actual)

        try:
            blob_client.delete_blob(etag=props.etag, match_condition=MatchConditions.IfNotModified)
        except ResourceModifiedError:
            raise ConflictError(doc_id, rev, None)

        logger.debug(f"Deleted {doc_id}")
        return new_revision(rev, {"_deleted": True}, self.rev_field)

    def list_ids(self, prefix: str = "") -> list[str]:
        """List document ids with given prefix."""
        container_client = self.client.get_container_client(self.container)
        blobs = container_client.list_blobs(name_starts_with=prefix or None)
        ids = [blob.name[: -len(".json")] for blob in blobs if blob.name.endswith(".json")]
        logger.debug(f"Listed {len(ids)} documents with prefix '{prefix}'")
        return sorted(ids)
