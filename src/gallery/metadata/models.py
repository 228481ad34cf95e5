"""Data model for gallery metadata records.

A record is stored as one item whose attribute names are exactly the JSON
field names returned by the API (``id``, ``url``, ``contentType``,
``createdAt``, ``note``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string with milliseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Record:
    """Metadata for one uploaded object.

    Attributes:
        id: Object key, always under the upload prefix.
        url: Where the stored binary can be fetched.
        content_type: MIME type recorded at creation.
        created_at: ISO 8601 creation timestamp.
        note: Optional annotation; None means no annotation.
    """

    id: str
    url: str
    content_type: str = DEFAULT_CONTENT_TYPE
    created_at: str = ""
    note: str | None = None

    @classmethod
    def new(
        cls,
        id: str,
        url: str,
        content_type: str | None = None,
        note: str | None = None,
    ) -> Record:
        """Build a fresh record stamped with the current time.

        Empty or non-string notes are dropped.
        """
        return cls(
            id=id,
            url=url,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            created_at=now_iso(),
            note=note if isinstance(note, str) and note else None,
        )

    def to_item(self) -> dict[str, Any]:
        """Return the stored/serialized form; ``note`` is omitted when None."""
        item: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "contentType": self.content_type,
            "createdAt": self.created_at,
        }
        if self.note is not None:
            item["note"] = self.note
        return item


def sort_newest_first(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort items by ``createdAt`` descending.

    ISO 8601 strings compare correctly as plain strings. Items without a
    timestamp sort last, as the empty string.
    """
    return sorted(items, key=lambda item: item.get("createdAt") or "", reverse=True)
