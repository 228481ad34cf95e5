"""Abstract object store protocol for the gallery service."""

from typing import Protocol

from gallery.config import DEFAULT_PUBLIC_URL_TEMPLATE


def format_public_url(
    bucket: str, region: str, key: str, template: str = DEFAULT_PUBLIC_URL_TEMPLATE
) -> str:
    """Build the public retrieval URL for ``key``.

    With the default template this is the S3 virtual-hosted address
    ``https://<bucket>.s3.<region>.amazonaws.com/<key>``; clients compare
    these URLs verbatim.
    """
    return template.format(bucket=bucket, region=region, key=key)


class ObjectStore(Protocol):
    """Protocol defining the object store interface.

    The service never carries object bytes itself: uploads go straight from
    the browser to the store through a presigned URL.
    """

    bucket_name: str
    region: str

    async def init(self) -> None:
        """Connect to the store."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        ...

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Return a URL allowing a single PUT of ``content_type`` to ``key``.

        Args:
            key: The object key the URL is scoped to.
            content_type: The Content-Type the upload must carry.
            expires_in: Validity window in seconds.

        Returns:
            The presigned URL.
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error.

        Args:
            key: The object key.
        """
        ...

    def public_url(self, key: str) -> str:
        """Return the public retrieval URL for ``key``."""
        ...
