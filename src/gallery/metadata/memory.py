"""In-memory metadata store for the gallery service.

Useful for testing and local development. Data is lost on restart.
Semantics follow DynamoDB: put overwrites, update upserts, delete of a
missing id is silent, and listing reads items in insertion order up to the
limit before sorting.
"""

from typing import Any

from gallery.metadata.models import sort_newest_first


class MemoryRecordStore:
    """In-memory record store using a Python dict."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    async def init_db(self) -> None:
        pass

    async def close(self) -> None:
        self._records.clear()

    async def put_record(self, item: dict[str, Any]) -> None:
        self._records[item["id"]] = dict(item)

    async def list_records(self, limit: int = 100) -> list[dict[str, Any]]:
        page = [dict(item) for item in list(self._records.values())[:limit]]
        return sort_newest_first(page)

    async def update_record(self, record_id: str, fields: dict[str, str]) -> dict[str, Any]:
        item = self._records.setdefault(record_id, {"id": record_id})
        item.update(fields)
        return dict(item)

    async def delete_record(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    async def get_record(self, record_id: str) -> dict[str, Any] | None:
        """Return a copy of one stored item, for inspection in tests."""
        item = self._records.get(record_id)
        return dict(item) if item is not None else None
