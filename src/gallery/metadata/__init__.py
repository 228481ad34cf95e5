"""Metadata store backends for the gallery service."""

from typing import TYPE_CHECKING

from gallery.metadata.models import Record, sort_newest_first
from gallery.metadata.store import RecordStore

if TYPE_CHECKING:
    from gallery.config import GalleryConfig

__all__ = [
    "create_metadata_store",
    "Record",
    "RecordStore",
    "sort_newest_first",
]


def create_metadata_store(config: "GalleryConfig") -> RecordStore:
    """Create a metadata store instance based on configuration.

    Args:
        config: The full gallery configuration (the DynamoDB region falls
            back to the object store region).

    Returns:
        A store implementing the RecordStore protocol.

    Raises:
        ValueError: If the engine is unknown.
    """
    engine = config.metadata.engine

    if engine == "dynamodb":
        from gallery.metadata.dynamodb import DynamoDBRecordStore

        return DynamoDBRecordStore(
            table=config.metadata.table,
            region=config.service_region,
            endpoint_url=config.metadata.endpoint_url,
        )

    elif engine == "memory":
        from gallery.metadata.memory import MemoryRecordStore

        return MemoryRecordStore()

    else:
        raise ValueError(f"Unknown metadata engine: {engine}")
