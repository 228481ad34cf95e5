"""AWS DynamoDB metadata store backend for the gallery service.

One item per record, hash key ``id`` (string). Attribute names match the
API field names: id, url, contentType, createdAt, note.
"""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from gallery.metadata.models import sort_newest_first

logger = logging.getLogger(__name__)

# Expression placeholders for the patchable attributes
_UPDATE_PLACEHOLDERS = {"note": ("#n", ":n"), "url": ("#u", ":u")}


class DynamoDBRecordStore:
    """DynamoDB-backed record store.

    Implements the RecordStore protocol using aiobotocore for async access.
    """

    def __init__(self, table: str, region: str = "us-east-1", endpoint_url: str = "") -> None:
        """Initialize the DynamoDB record store.

        Args:
            table: The DynamoDB table name.
            region: The AWS region of the table.
            endpoint_url: Optional endpoint override (e.g. DynamoDB Local).
        """
        self._table_name = table
        self._region = region
        self._endpoint_url = endpoint_url
        self._client: Any = None
        self._client_ctx: Any = None
        self._session: Any = None

    async def init_db(self) -> None:
        """Create the DynamoDB client and check that the table is reachable.

        An unreachable or missing table is only logged; the client stays
        open and each request against it fails with its own error.
        """
        import aiobotocore.session

        self._session = aiobotocore.session.get_session()

        kwargs: dict[str, Any] = {"region_name": self._region}
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url

        self._client_ctx = self._session.create_client("dynamodb", **kwargs)
        self._client = await self._client_ctx.__aenter__()

        try:
            await self._client.describe_table(TableName=self._table_name)
            logger.info("Connected to DynamoDB table: %s", self._table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ResourceNotFoundException":
                logger.warning(
                    "DynamoDB table '%s' not found. Create it with a string hash key 'id'.",
                    self._table_name,
                )
            else:
                logger.warning("Could not describe DynamoDB table '%s': %s", self._table_name, e)
        except BotoCoreError as e:
            logger.warning("DynamoDB endpoint unreachable for table '%s': %s", self._table_name, e)

    async def close(self) -> None:
        """Close the DynamoDB client."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    async def put_record(self, item: dict[str, Any]) -> None:
        """Write a record unconditionally (no condition expression).

        Args:
            item: The full record item.
        """
        await self._client.put_item(
            TableName=self._table_name,
            Item=self._dict_to_item(item),
        )

    async def list_records(self, limit: int = 100) -> list[dict[str, Any]]:
        """Read one Scan page of at most ``limit`` items, newest first.

        Args:
            limit: Scan ``Limit``.

        Returns:
            A list of record dicts sorted by createdAt descending.
        """
        resp = await self._client.scan(TableName=self._table_name, Limit=limit)
        items = [self._item_to_dict(item) for item in resp.get("Items", [])]
        return sort_newest_first(items)

    async def update_record(self, record_id: str, fields: dict[str, str]) -> dict[str, Any]:
        """Apply a SET patch for the given fields and return the new item.

        Args:
            record_id: The record id.
            fields: Attribute values keyed by ``note`` and/or ``url``.

        Returns:
            All attributes of the item after the update.
        """
        set_parts = []
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        for field, value in fields.items():
            name_ph, value_ph = _UPDATE_PLACEHOLDERS[field]
            set_parts.append(f"{name_ph} = {value_ph}")
            names[name_ph] = field
            values[value_ph] = {"S": value}

        resp = await self._client.update_item(
            TableName=self._table_name,
            Key={"id": {"S": record_id}},
            UpdateExpression="SET " + ", ".join(set_parts),
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        return self._item_to_dict(resp.get("Attributes", {}))

    async def delete_record(self, record_id: str) -> None:
        """Delete a record (no existence check).

        Args:
            record_id: The record id.
        """
        await self._client.delete_item(
            TableName=self._table_name,
            Key={"id": {"S": record_id}},
        )

    def _dict_to_item(self, data: dict[str, Any]) -> dict[str, Any]:
        """Convert a flat dict of strings to a DynamoDB item."""
        item: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            item[key] = {"S": str(value)}
        return item

    def _item_to_dict(self, item: dict[str, Any]) -> dict[str, Any]:
        """Convert a DynamoDB item to a Python dict."""
        result: dict[str, Any] = {}
        for key, value in item.items():
            if "S" in value:
                result[key] = value["S"]
            elif "N" in value:
                result[key] = int(value["N"]) if "." not in value["N"] else float(value["N"])
            elif "BOOL" in value:
                result[key] = value["BOOL"]
            elif "NULL" in value:
                result[key] = None
        return result
