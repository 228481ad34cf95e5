"""Error definitions for the gallery service."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class GalleryError(Exception):
    """An API error with code, message, and HTTP status.

    Attributes:
        code: Short machine-readable error code (e.g. "InvalidRecordId").
        message: Human-readable error description.
        http_status: The HTTP status code to return.
        detail: Optional upstream error text attached to the JSON body.
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 400,
        detail: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: Error code.
            message: Error description.
            http_status: HTTP status code (default 400).
            detail: Optional upstream detail.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.detail = detail

    def to_body(self) -> dict[str, str]:
        """Return the JSON error body for this error."""
        body = {"error": self.message}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


# -- Client input errors (400) ------------------------------------------------


class InvalidRecordId(GalleryError):
    """The id is missing or does not start with the upload prefix."""

    def __init__(self, message: str = "Invalid or missing id") -> None:
        super().__init__(code="InvalidRecordId", message=message, http_status=400)


class MissingField(GalleryError):
    """A required request field was not provided."""

    def __init__(self, field: str) -> None:
        super().__init__(code="MissingField", message=f"{field} is required", http_status=400)


class NothingToUpdate(GalleryError):
    """An update request carried none of the patchable fields."""

    def __init__(self, message: str = "Nothing to update (note or url required)") -> None:
        super().__init__(code="NothingToUpdate", message=message, http_status=400)


class InvalidRequest(GalleryError):
    """The request could not be parsed."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(code="InvalidRequest", message=message, http_status=400)


# -- Upstream errors (500) ----------------------------------------------------


class UpstreamStoreError(GalleryError):
    """The object store or metadata table call failed."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(
            code="UpstreamStoreError", message=message, http_status=500, detail=detail
        )


class InternalError(GalleryError):
    """An unexpected internal error occurred."""

    def __init__(self, message: str = "Internal Error") -> None:
        super().__init__(code="InternalError", message=message, http_status=500)


@contextmanager
def upstream_errors(message: str) -> Iterator[None]:
    """Translate any store failure raised in the block into UpstreamStoreError.

    The failure is logged with its traceback. GalleryError subclasses pass
    through untouched.

    Args:
        message: The error message returned to the caller.

    Raises:
        UpstreamStoreError: Wrapping the original exception.
    """
    try:
        yield
    except GalleryError:
        raise
    except Exception as exc:
        logger.error("%s: %s", message, exc, exc_info=True)
        raise UpstreamStoreError(message, detail=str(exc)) from exc
