"""Abstract metadata store protocol for the gallery service."""

from typing import Any, Protocol


class RecordStore(Protocol):
    """Protocol defining the metadata store interface.

    Every operation is a single round-trip to the table. There is no
    cross-operation transaction and no optimistic concurrency: concurrent
    writers of the same id race and the last one wins.
    """

    async def init_db(self) -> None:
        """Open the connection and verify the table is reachable."""
        ...

    async def close(self) -> None:
        """Close the connection and release resources."""
        ...

    async def put_record(self, item: dict[str, Any]) -> None:
        """Write a record, overwriting any existing record with the same id.

        Args:
            item: The full record item, including ``id``.
        """
        ...

    async def list_records(self, limit: int = 100) -> list[dict[str, Any]]:
        """Return up to ``limit`` records, newest ``createdAt`` first.

        Only one page is read. Records beyond the limit are not listed but
        remain reachable by id.

        Args:
            limit: Maximum number of records to read.

        Returns:
            A list of record items.
        """
        ...

    async def update_record(self, record_id: str, fields: dict[str, str]) -> dict[str, Any]:
        """Set the given attributes on a record atomically.

        Args:
            record_id: The record id.
            fields: Attribute name to new value; only ``note``/``url``.

        Returns:
            The full record item after the update.
        """
        ...

    async def delete_record(self, record_id: str) -> None:
        """Delete a record. Deleting a missing id is not an error.

        Args:
            record_id: The record id.
        """
        ...
