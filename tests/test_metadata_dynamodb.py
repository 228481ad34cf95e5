"""Tests for DynamoDBRecordStore.

The unit tests inject a mocked aiobotocore client onto ``store._client``.

The integration tests at the bottom need DynamoDB Local:
1. Start DynamoDB Local: docker run -p 8000:8000 amazon/dynamodb-local
2. Set environment: export DYNAMODB_TEST_ENDPOINT=http://localhost:8000
3. Run: pytest tests/test_metadata_dynamodb.py -v

They are skipped by default.
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from gallery.metadata.dynamodb import DynamoDBRecordStore


def _client_error(code: str, message: str = "error") -> ClientError:
    """Create a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, "TestOperation")


def _make_store(table="uploads"):
    """Create a DynamoDBRecordStore with a mock client (skip init)."""
    store = DynamoDBRecordStore(table=table, region="eu-west-1")
    store._client = AsyncMock()
    store._client_ctx = AsyncMock()
    return store


class TestInit:
    """Tests for init_db() and close()."""

    async def test_init_describes_table(self):
        client = AsyncMock()
        ctx = MagicMock()
        ctx.__aenter__ = AsyncMock(return_value=client)
        ctx.__aexit__ = AsyncMock(return_value=None)
        session = MagicMock()
        session.create_client.return_value = ctx

        store = DynamoDBRecordStore(table="uploads", region="eu-west-1", endpoint_url="http://ddb:8000")
        with patch("aiobotocore.session.get_session", return_value=session):
            await store.init_db()

        session.create_client.assert_called_once_with(
            "dynamodb", region_name="eu-west-1", endpoint_url="http://ddb:8000"
        )
        client.describe_table.assert_awaited_once_with(TableName="uploads")

        await store.close()
        ctx.__aexit__.assert_awaited_once()
        assert store._client is None

    @pytest.mark.parametrize(
        "error",
        [
            _client_error("ResourceNotFoundException"),
            _client_error("AccessDeniedException"),
            EndpointConnectionError(endpoint_url="http://ddb:8000"),
        ],
    )
    async def test_init_unreachable_table_keeps_client(self, error):
        client = AsyncMock()
        client.describe_table.side_effect = error
        ctx = MagicMock()
        ctx.__aenter__ = AsyncMock(return_value=client)
        ctx.__aexit__ = AsyncMock(return_value=None)
        session = MagicMock()
        session.create_client.return_value = ctx

        store = DynamoDBRecordStore(table="missing")
        with patch("aiobotocore.session.get_session", return_value=session):
            await store.init_db()

        assert store._client is client
        ctx.__aexit__.assert_not_awaited()

    async def test_close_without_init(self):
        await DynamoDBRecordStore(table="uploads").close()


class TestRecordOperations:
    """Tests for the calls each operation makes."""

    async def test_put_record(self):
        store = _make_store()
        await store.put_record(
            {"id": "uploads/a", "url": "u", "contentType": "image/png", "createdAt": "t"}
        )
        store._client.put_item.assert_awaited_once_with(
            TableName="uploads",
            Item={
                "id": {"S": "uploads/a"},
                "url": {"S": "u"},
                "contentType": {"S": "image/png"},
                "createdAt": {"S": "t"},
            },
        )

    async def test_put_record_skips_none(self):
        store = _make_store()
        await store.put_record({"id": "uploads/a", "url": "u", "note": None})
        item = store._client.put_item.call_args.kwargs["Item"]
        assert "note" not in item

    async def test_list_records_single_page_sorted(self):
        store = _make_store()
        store._client.scan.return_value = {
            "Items": [
                {"id": {"S": "uploads/old"}, "createdAt": {"S": "2024-01-01T00:00:00.000Z"}},
                {"id": {"S": "uploads/new"}, "createdAt": {"S": "2024-06-01T00:00:00.000Z"}},
            ],
            "LastEvaluatedKey": {"id": {"S": "uploads/new"}},
        }
        items = await store.list_records(limit=100)
        store._client.scan.assert_awaited_once_with(TableName="uploads", Limit=100)
        assert [i["id"] for i in items] == ["uploads/new", "uploads/old"]

    async def test_list_records_empty(self):
        store = _make_store()
        store._client.scan.return_value = {}
        assert await store.list_records() == []

    async def test_update_note(self):
        store = _make_store()
        store._client.update_item.return_value = {
            "Attributes": {"id": {"S": "uploads/a"}, "note": {"S": "dog"}}
        }
        result = await store.update_record("uploads/a", {"note": "dog"})
        store._client.update_item.assert_awaited_once_with(
            TableName="uploads",
            Key={"id": {"S": "uploads/a"}},
            UpdateExpression="SET #n = :n",
            ExpressionAttributeNames={"#n": "note"},
            ExpressionAttributeValues={":n": {"S": "dog"}},
            ReturnValues="ALL_NEW",
        )
        assert result == {"id": "uploads/a", "note": "dog"}

    async def test_update_note_and_url(self):
        store = _make_store()
        store._client.update_item.return_value = {"Attributes": {}}
        await store.update_record("uploads/a", {"note": "n", "url": "u"})
        kwargs = store._client.update_item.call_args.kwargs
        assert kwargs["UpdateExpression"] == "SET #n = :n, #u = :u"
        assert kwargs["ExpressionAttributeNames"] == {"#n": "note", "#u": "url"}
        assert kwargs["ExpressionAttributeValues"] == {":n": {"S": "n"}, ":u": {"S": "u"}}

    async def test_delete_record(self):
        store = _make_store()
        await store.delete_record("uploads/a")
        store._client.delete_item.assert_awaited_once_with(
            TableName="uploads", Key={"id": {"S": "uploads/a"}}
        )

    async def test_errors_propagate(self):
        store = _make_store()
        store._client.put_item.side_effect = _client_error("ProvisionedThroughputExceededException")
        with pytest.raises(ClientError):
            await store.put_record({"id": "uploads/a"})


class TestItemConversion:
    def test_item_to_dict_types(self):
        store = _make_store()
        item = {
            "id": {"S": "uploads/a"},
            "size": {"N": "12"},
            "ratio": {"N": "1.5"},
            "public": {"BOOL": True},
            "gone": {"NULL": True},
        }
        assert store._item_to_dict(item) == {
            "id": "uploads/a",
            "size": 12,
            "ratio": 1.5,
            "public": True,
            "gone": None,
        }


# -- DynamoDB Local ----------------------------------------------------------

_local = pytest.mark.skipif(
    not os.environ.get("DYNAMODB_TEST_ENDPOINT"),
    reason="Set DYNAMODB_TEST_ENDPOINT to run DynamoDB tests",
)

_LOCAL_TABLE = "test-gallery-uploads"


def _create_table(endpoint_url: str) -> None:
    """Create the test table with a string hash key ``id``."""
    import boto3

    client = boto3.client("dynamodb", region_name="us-east-1", endpoint_url=endpoint_url)
    try:
        client.create_table(
            TableName=_LOCAL_TABLE,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    except client.exceptions.ResourceInUseException:
        pass


@pytest.fixture
async def local_store():
    endpoint = os.environ["DYNAMODB_TEST_ENDPOINT"]
    _create_table(endpoint)
    store = DynamoDBRecordStore(table=_LOCAL_TABLE, region="us-east-1", endpoint_url=endpoint)
    await store.init_db()
    yield store
    await store.close()


@_local
class TestDynamoDBLocal:
    """Round trips against DynamoDB Local."""

    async def test_put_list_delete(self, local_store):
        item = {
            "id": "uploads/local_1",
            "url": "https://b/uploads/local_1",
            "contentType": "image/png",
            "createdAt": "2024-01-01T00:00:00.000Z",
        }
        await local_store.put_record(item)
        assert item in await local_store.list_records()

        await local_store.delete_record("uploads/local_1")
        ids = [i["id"] for i in await local_store.list_records()]
        assert "uploads/local_1" not in ids

    async def test_update_returns_all_attributes(self, local_store):
        await local_store.put_record(
            {"id": "uploads/local_2", "url": "u", "createdAt": "t", "note": "cat"}
        )
        updated = await local_store.update_record("uploads/local_2", {"note": "dog"})
        assert updated == {"id": "uploads/local_2", "url": "u", "createdAt": "t", "note": "dog"}
        await local_store.delete_record("uploads/local_2")

    async def test_update_missing_upserts(self, local_store):
        updated = await local_store.update_record("uploads/local_3", {"url": "u"})
        assert updated == {"id": "uploads/local_3", "url": "u"}
        await local_store.delete_record("uploads/local_3")
