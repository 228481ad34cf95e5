"""JSON API request handlers for the gallery service.

Implements:
    - Presign (GET /api/s3/presign)
    - SaveRecord (POST /api/db/save)
    - ListRecords (GET /api/db/list)
    - UpdateRecord (POST /api/db/update)
    - DeleteRecord (DELETE /api/db/delete)
"""

import json
import logging
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from gallery.errors import InvalidRequest
from gallery.service import GalleryService

logger = logging.getLogger(__name__)


class ApiHandler:
    """Handles the gallery JSON endpoints.

    Store clients are read from ``app.state`` on every request, so they can
    be replaced (e.g. by in-memory fakes) after the app is created.

    Attributes:
        app: The parent FastAPI application.
    """

    def __init__(self, app: FastAPI) -> None:
        self.app = app

    @property
    def metadata(self):
        """Shortcut to the record store on app.state."""
        return self.app.state.metadata

    @property
    def storage(self):
        """Shortcut to the object store on app.state."""
        return self.app.state.storage

    @property
    def config(self):
        """Shortcut to the GalleryConfig on app.state."""
        return self.app.state.config

    @property
    def service(self) -> GalleryService:
        """A GalleryService bound to the current store clients."""
        return GalleryService(
            metadata=self.metadata,
            storage=self.storage,
            upload_prefix=self.config.storage.upload_prefix,
            presign_expires=self.config.storage.presign_expires,
            list_limit=self.config.metadata.list_limit,
        )

    async def _json_body(self, request: Request) -> dict[str, Any]:
        """Parse the request body as a JSON object; an empty body is ``{}``.

        Raises:
            InvalidRequest: If the body is not a JSON object.
        """
        raw = await request.body()
        if not raw.strip():
            return {}
        try:
            body = json.loads(raw)
        except ValueError as exc:
            raise InvalidRequest("Request body must be valid JSON") from exc
        if not isinstance(body, dict):
            raise InvalidRequest("Request body must be a JSON object")
        return body

    async def presign(self, request: Request) -> Response:
        """Issue a presigned upload URL.

        Implements: GET /api/s3/presign?filename=&contentType=
        """
        params = request.query_params
        grant = await self.service.presign(
            filename=params.get("filename"),
            content_type=params.get("contentType"),
        )
        return JSONResponse(grant.to_dict())

    async def save_record(self, request: Request) -> Response:
        """Persist the record for an uploaded object.

        Implements: POST /api/db/save {id, url, contentType?, note?}
        """
        body = await self._json_body(request)
        item = await self.service.save(
            body.get("id"),
            url=body.get("url"),
            content_type=body.get("contentType"),
            note=body.get("note"),
        )
        return JSONResponse({"ok": True, "item": item})

    async def list_records(self, request: Request) -> Response:
        """List records, newest first.

        Implements: GET /api/db/list
        """
        items = await self.service.list_records()
        return JSONResponse({"items": items})

    async def update_record(self, request: Request) -> Response:
        """Patch note and/or url on a record.

        Implements: POST /api/db/update {id, note?, url?}
        """
        body = await self._json_body(request)
        item = await self.service.update(body.get("id"), note=body.get("note"), url=body.get("url"))
        return JSONResponse({"ok": True, "item": item})

    async def delete_record(self, request: Request) -> Response:
        """Delete a record and, best-effort, its object.

        Implements: DELETE /api/db/delete?id=

        The id may also come from a JSON body when the query has none.
        """
        record_id = request.query_params.get("id")
        if not record_id:
            body = await self._json_body(request)
            record_id = body.get("id")
        deleted = await self.service.delete(record_id)
        return JSONResponse({"ok": True, "deleted": deleted})
