"""AWS S3 object store for the gallery service.

Issues presigned PUT URLs and deletes objects via aiobotocore. Object bytes
never pass through this process.

Credentials are resolved via the standard AWS credential chain
(env vars, ~/.aws/credentials, IAM role, etc.).
"""

import logging

from aiobotocore.session import AioSession

from gallery.config import DEFAULT_PUBLIC_URL_TEMPLATE
from gallery.storage.backend import format_public_url

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """Object store backed by a single S3 bucket.

    Attributes:
        bucket_name: The S3 bucket name.
        region: The AWS region for the bucket.
        endpoint_url: Optional endpoint override (e.g. a local S3 emulator).
    """

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        endpoint_url: str = "",
        public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE,
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_url_template = public_url_template
        self._session = AioSession()
        self._client = None
        self._client_ctx = None

    async def init(self) -> None:
        """Create the aiobotocore S3 client.

        The bucket is not probed: presigning is a local computation and a
        missing bucket surfaces on the client's PUT.
        """
        client_kwargs: dict = {"region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()

        logger.info(
            "S3 object store initialized: bucket=%s region=%s",
            self.bucket_name,
            self.region,
        )

    async def close(self) -> None:
        """Close the aiobotocore client session."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Sign a PutObject request scoped to bucket, key and content type.

        Returns:
            The presigned URL.
        """
        return await self._client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket_name, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )

    async def delete(self, key: str) -> None:
        """Delete an object from the bucket.

        S3 reports success for keys that do not exist.
        """
        await self._client.delete_object(Bucket=self.bucket_name, Key=key)

    def public_url(self, key: str) -> str:
        return format_public_url(self.bucket_name, self.region, key, self.public_url_template)
