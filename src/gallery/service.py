"""Record lifecycle operations for the gallery service.

``GalleryService`` keeps the object store and the metadata table
consistent as far as single-step calls allow. Every mutating operation
goes through the ``requires_valid_id`` guard before touching a store;
store failures become ``UpstreamStoreError``.

Deletion removes the record first and treats that as the outcome of the
request. Removing the object afterwards is best-effort: a failure there is
logged and reported as ``s3: False`` but never fails the request, so an
unreachable object store cannot keep records from being removed.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from gallery import metrics
from gallery.errors import UpstreamStoreError, upstream_errors
from gallery.metadata.models import Record
from gallery.metadata.store import RecordStore
from gallery.storage.backend import ObjectStore
from gallery.uploads import UploadAuthorization, UploadAuthorizer
from gallery.validation import build_patch, require_url, requires_valid_id

logger = logging.getLogger(__name__)

LIST_LIMIT = 100


@contextmanager
def _store_call(operation: str, message: str) -> Iterator[None]:
    """Run one store step under upstream_errors() and count its outcome."""
    try:
        with upstream_errors(message):
            yield
    except UpstreamStoreError:
        metrics.observe_operation(operation, "error")
        raise
    metrics.observe_operation(operation, "ok")


class GalleryService:
    """Upload authorization and record CRUD over injected store clients.

    Attributes:
        metadata: The record store.
        storage: The object store.
        upload_prefix: Prefix every record id must start with.
        list_limit: Maximum number of records returned by :meth:`list_records`.
    """

    def __init__(
        self,
        metadata: RecordStore,
        storage: ObjectStore,
        upload_prefix: str,
        presign_expires: int = 60,
        list_limit: int = LIST_LIMIT,
    ) -> None:
        self.metadata = metadata
        self.storage = storage
        self.upload_prefix = upload_prefix
        self.list_limit = list_limit
        self.authorizer = UploadAuthorizer(storage, upload_prefix, expires_in=presign_expires)

    async def presign(
        self, filename: str | None = None, content_type: str | None = None
    ) -> UploadAuthorization:
        """Issue an upload authorization for a new key."""
        with _store_call("presign", "Failed to presign upload"):
            grant = await self.authorizer.presign(filename, content_type)
        return grant

    @requires_valid_id
    async def save(
        self,
        record_id: str,
        url: Any = None,
        content_type: str | None = None,
        note: Any = None,
    ) -> dict[str, Any]:
        """Create or overwrite the record for an uploaded object.

        Args:
            record_id: The object key returned by :meth:`presign`.
            url: Location of the stored object; required.
            content_type: MIME type, ``application/octet-stream`` if omitted.
            note: Optional annotation; dropped when empty.

        Returns:
            The stored record item.
        """
        record = Record.new(record_id, require_url(url), content_type, note)
        item = record.to_item()

        with _store_call("save", "Failed to save record"):
            await self.metadata.put_record(item)

        logger.info("Saved record %s", record_id, extra={"record_id": record_id})
        return item

    async def list_records(self) -> list[dict[str, Any]]:
        """Return up to ``list_limit`` records, newest first."""
        with _store_call("list", "Failed to list records"):
            items = await self.metadata.list_records(limit=self.list_limit)

        return items

    @requires_valid_id
    async def update(self, record_id: str, note: Any = None, url: Any = None) -> dict[str, Any]:
        """Patch ``note`` and/or ``url`` on a record.

        Returns:
            The full record item after the update.

        Raises:
            NothingToUpdate: If neither field is given.
        """
        patch = build_patch(note=note, url=url)

        with _store_call("update", "Failed to update record"):
            item = await self.metadata.update_record(record_id, patch)

        logger.info(
            "Updated record %s (%s)", record_id, ", ".join(patch), extra={"record_id": record_id}
        )
        return item

    @requires_valid_id
    async def delete(self, record_id: str) -> dict[str, bool]:
        """Delete a record, then try to delete its object.

        Returns:
            ``{"ddb": True, "s3": <whether the object deletion succeeded>}``.
        """
        with _store_call("delete", "Failed to delete record"):
            await self.metadata.delete_record(record_id)

        s3_deleted = False
        try:
            await self.storage.delete(record_id)
            s3_deleted = True
        except Exception:
            metrics.observe_object_delete_failure()
            logger.warning(
                "Object store delete failed for %s", record_id,
                exc_info=True,
                extra={"record_id": record_id},
            )

        logger.info("Deleted record %s", record_id, extra={"record_id": record_id})
        return {"ddb": True, "s3": s3_deleted}
