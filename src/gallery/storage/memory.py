"""In-memory object store for the gallery service.

Useful for testing and local development. Presigned URLs point at a
``memory://`` address and nothing can actually be uploaded to them; tests
place objects with :meth:`MemoryObjectStore.put` instead.
"""

import logging
import urllib.parse

from gallery.config import DEFAULT_PUBLIC_URL_TEMPLATE
from gallery.storage.backend import format_public_url

logger = logging.getLogger(__name__)


class MemoryObjectStore:
    """Object store keeping object bytes in a dict."""

    def __init__(
        self,
        bucket_name: str = "gallery-assets",
        region: str = "us-east-1",
        public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE,
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.public_url_template = public_url_template
        self.objects: dict[str, bytes] = {}
        self.presigned: list[dict[str, object]] = []

    async def init(self) -> None:
        logger.info("Memory object store initialized: bucket=%s", self.bucket_name)

    async def close(self) -> None:
        self.objects.clear()
        self.presigned.clear()

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        self.presigned.append(
            {"key": key, "content_type": content_type, "expires_in": expires_in}
        )
        query = urllib.parse.urlencode({"content-type": content_type, "expires": expires_in})
        return f"memory://{self.bucket_name}/{key}?{query}"

    def put(self, key: str, data: bytes) -> None:
        """Store an object directly (stands in for the client's presigned PUT)."""
        self.objects[key] = data

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)

    def public_url(self, key: str) -> str:
        return format_public_url(self.bucket_name, self.region, key, self.public_url_template)
