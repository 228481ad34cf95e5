"""Upload authorization issuing.

An authorization is a presigned PUT URL scoped to one freshly minted key and
one content type. Issuing it persists nothing: an unused URL simply expires,
and a completed upload that is never saved leaves an unreferenced object.
"""

import logging
from dataclasses import dataclass

from gallery.errors import upstream_errors
from gallery.keys import DEFAULT_BASENAME, mint_key
from gallery.metadata.models import DEFAULT_CONTENT_TYPE
from gallery.storage.backend import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 60


@dataclass
class UploadAuthorization:
    """A presigned upload grant returned to the client."""

    upload_url: str
    key: str
    public_url: str

    def to_dict(self) -> dict[str, str]:
        return {"uploadUrl": self.upload_url, "key": self.key, "publicUrl": self.public_url}


class UploadAuthorizer:
    """Issues presigned PUT URLs for new uploads under the upload prefix."""

    def __init__(
        self,
        storage: ObjectStore,
        upload_prefix: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> None:
        self.storage = storage
        self.upload_prefix = upload_prefix
        self.expires_in = expires_in

    async def presign(
        self, filename: str | None = None, content_type: str | None = None
    ) -> UploadAuthorization:
        """Mint a key and sign a single PUT to it.

        Args:
            filename: Client filename hint; sanitized into the key.
            content_type: Content-Type the upload must use.

        Returns:
            The upload URL, the minted key and its public URL.

        Raises:
            UpstreamStoreError: If signing fails.
        """
        content_type = content_type or DEFAULT_CONTENT_TYPE
        key = mint_key(self.upload_prefix, filename or DEFAULT_BASENAME)

        with upstream_errors("Failed to presign upload"):
            upload_url = await self.storage.presign_put(key, content_type, self.expires_in)

        logger.debug("Presigned upload for %s (%s)", key, content_type)
        return UploadAuthorization(
            upload_url=upload_url,
            key=key,
            public_url=self.storage.public_url(key),
        )
