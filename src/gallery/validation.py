"""Record input validation for the gallery service.

``is_valid_id`` is the single predicate deciding whether an id may reach a
store. ``requires_valid_id`` applies it to every mutating operation so the
check happens before any store call is made.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from gallery.errors import InvalidRecordId, MissingField, NothingToUpdate

T = TypeVar("T")

PATCHABLE_FIELDS = ("note", "url")


def is_valid_id(value: Any, prefix: str) -> bool:
    """Return True iff ``value`` is a string starting with ``prefix``."""
    return isinstance(value, str) and value.startswith(prefix)


def requires_valid_id(
    method: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Guard a coroutine method whose first argument is a record id.

    The owning object must expose ``upload_prefix``.

    Raises:
        InvalidRecordId: If the id is missing or not under the prefix.
    """

    @functools.wraps(method)
    async def wrapper(self, record_id: Any, *args: Any, **kwargs: Any) -> T:
        if not is_valid_id(record_id, self.upload_prefix):
            raise InvalidRecordId()
        return await method(self, record_id, *args, **kwargs)

    return wrapper


def require_url(url: Any) -> str:
    """Validate the ``url`` of a save request.

    Raises:
        MissingField: If the url is missing or empty.
    """
    if not url or not isinstance(url, str):
        raise MissingField("url")
    return url


def build_patch(note: Any = None, url: Any = None) -> dict[str, str]:
    """Collect the patchable fields present in an update request.

    Only string values count; an empty string is a valid value that clears
    the field's content.

    Raises:
        NothingToUpdate: If neither ``note`` nor ``url`` is a string.
    """
    patch = {
        name: value
        for name, value in zip(PATCHABLE_FIELDS, (note, url))
        if isinstance(value, str)
    }
    if not patch:
        raise NothingToUpdate()
    return patch
