"""Tests for the in-memory record store and the record model."""

import re

import pytest

from gallery.metadata.memory import MemoryRecordStore
from gallery.metadata.models import Record, now_iso, sort_newest_first


@pytest.fixture
async def store():
    s = MemoryRecordStore()
    await s.init_db()
    yield s
    await s.close()


def _item(record_id, created_at, **extra):
    return {
        "id": record_id,
        "url": f"https://b.s3.r.amazonaws.com/{record_id}",
        "contentType": "image/png",
        "createdAt": created_at,
        **extra,
    }


class TestRecordModel:
    def test_now_iso_format(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())

    def test_new_defaults(self):
        record = Record.new("uploads/a", "https://x/a")
        assert record.content_type == "application/octet-stream"
        assert record.created_at.endswith("Z")
        assert record.note is None

    def test_empty_note_dropped(self):
        assert Record.new("uploads/a", "u", note="").note is None

    def test_non_string_note_dropped(self):
        assert Record.new("uploads/a", "u", note=42).note is None

    def test_to_item_omits_missing_note(self):
        item = Record.new("uploads/a", "u", "image/png").to_item()
        assert set(item) == {"id", "url", "contentType", "createdAt"}

    def test_to_item_with_note(self):
        item = Record.new("uploads/a", "u", "image/png", note="cat").to_item()
        assert item["note"] == "cat"

    def test_sort_newest_first(self):
        items = [
            _item("uploads/old", "2024-01-01T00:00:00.000Z"),
            {"id": "uploads/none"},
            _item("uploads/new", "2024-06-01T00:00:00.000Z"),
        ]
        ids = [i["id"] for i in sort_newest_first(items)]
        assert ids == ["uploads/new", "uploads/old", "uploads/none"]


class TestMemoryRecordStore:
    async def test_put_and_get(self, store):
        await store.put_record(_item("uploads/a", "2024-01-01T00:00:00.000Z"))
        got = await store.get_record("uploads/a")
        assert got["contentType"] == "image/png"

    async def test_get_missing(self, store):
        assert await store.get_record("uploads/missing") is None

    async def test_put_overwrites(self, store):
        await store.put_record(_item("uploads/a", "2024-01-01T00:00:00.000Z", note="x"))
        await store.put_record(_item("uploads/a", "2024-02-01T00:00:00.000Z"))
        got = await store.get_record("uploads/a")
        assert got["createdAt"] == "2024-02-01T00:00:00.000Z"
        assert "note" not in got

    async def test_list_newest_first(self, store):
        await store.put_record(_item("uploads/old", "2024-01-01T00:00:00.000Z"))
        await store.put_record(_item("uploads/new", "2024-06-01T00:00:00.000Z"))
        items = await store.list_records()
        assert [i["id"] for i in items] == ["uploads/new", "uploads/old"]

    async def test_list_empty(self, store):
        assert await store.list_records() == []

    async def test_list_capped(self, store):
        for n in range(105):
            await store.put_record(_item(f"uploads/{n}", f"2024-01-01T00:00:00.{n:03d}Z"))
        items = await store.list_records(limit=100)
        assert len(items) == 100

    async def test_update_returns_full_item(self, store):
        await store.put_record(_item("uploads/a", "2024-01-01T00:00:00.000Z", note="cat"))
        updated = await store.update_record("uploads/a", {"note": "dog"})
        assert updated["note"] == "dog"
        assert updated["contentType"] == "image/png"
        assert updated["createdAt"] == "2024-01-01T00:00:00.000Z"

    async def test_update_missing_upserts(self, store):
        updated = await store.update_record("uploads/ghost", {"note": "boo"})
        assert updated == {"id": "uploads/ghost", "note": "boo"}
        assert await store.get_record("uploads/ghost") == updated

    async def test_delete(self, store):
        await store.put_record(_item("uploads/a", "2024-01-01T00:00:00.000Z"))
        await store.delete_record("uploads/a")
        assert await store.get_record("uploads/a") is None

    async def test_delete_missing_is_silent(self, store):
        await store.delete_record("uploads/never")

    async def test_returned_items_are_copies(self, store):
        await store.put_record(_item("uploads/a", "2024-01-01T00:00:00.000Z"))
        got = await store.get_record("uploads/a")
        got["note"] = "mutated"
        assert "note" not in await store.get_record("uploads/a")
