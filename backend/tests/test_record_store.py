"""
Unit Tests for OCR record persistence

Run with: pytest tests/test_record_store.py -v
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import IntegrityError, OperationalError

from database.ocr_models import OcrDataDB
from ocr.errors import RecordNotFoundError
from ocr.services.record_store import OcrRecordStore, OcrRecord


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_inserts_empty_record(self, fake_session):
        store = OcrRecordStore(fake_session)

        record = await store.create("uploads/chart-1.jpg")

        assert isinstance(record, OcrRecord)
        assert record.object_key == "uploads/chart-1.jpg"
        assert record.ocr_result is None
        assert "uploads/chart-1.jpg" in fake_session.rows
        assert fake_session.commits == 1

    @pytest.mark.asyncio
    async def test_create_duplicate_key_propagates(self, fake_session):
        store = OcrRecordStore(fake_session)
        await store.create("dup")

        with pytest.raises(IntegrityError):
            await store.create("dup")

        assert fake_session.rollbacks == 1
        assert fake_session.commits == 1


class TestUpdate:

    @pytest.mark.asyncio
    async def test_create_update_lookup(self, fake_session):
        store = OcrRecordStore(fake_session)

        await store.create("key-1")
        updated = await store.update("key-1", "X")
        found = await store.find_by_object_key("key-1")

        assert updated.ocr_result == "X"
        assert found.ocr_result == "X"
        assert (await store.get("key-1")).ocr_result == "X"

    @pytest.mark.asyncio
    async def test_update_sets_updated_at(self, fake_session):
        store = OcrRecordStore(fake_session)
        await store.create("key-1")

        updated = await store.update("key-1", "text")

        assert updated.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_overwrites_previous_result(self, fake_session):
        store = OcrRecordStore(fake_session)
        await store.create("key-1")

        await store.update("key-1", "first")
        await store.update("key-1", "second")

        assert fake_session.rows["key-1"].ocr_result == "second"

    @pytest.mark.asyncio
    async def test_update_unknown_key_raises_not_found(self, fake_session):
        store = OcrRecordStore(fake_session)

        with pytest.raises(RecordNotFoundError) as exc_info:
            await store.update("missing", "text")

        assert exc_info.value.object_key == "missing"
        assert fake_session.commits == 0
        assert fake_session.rollbacks == 1

    @pytest.mark.asyncio
    async def test_update_storage_error_rolls_back(self):
        db_obj = OcrDataDB(object_key="key-1")
        result = MagicMock()
        result.scalar_one_or_none.return_value = db_obj

        session = MagicMock()
        session.execute = AsyncMock(return_value=result)
        session.flush = AsyncMock()
        session.commit = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("connection lost")))
        session.rollback = AsyncMock()

        store = OcrRecordStore(session)

        with pytest.raises(OperationalError):
            await store.update("key-1", "text")

        session.rollback.assert_awaited_once()


class TestLookup:

    @pytest.mark.asyncio
    async def test_find_returns_none_when_absent(self, fake_session):
        store = OcrRecordStore(fake_session)
        assert await store.find_by_object_key("nope") is None

    @pytest.mark.asyncio
    async def test_get_raises_when_absent(self, fake_session):
        store = OcrRecordStore(fake_session)
        with pytest.raises(RecordNotFoundError):
            await store.get("nope")

    @pytest.mark.asyncio
    async def test_save_adds_and_flushes(self, fake_session):
        store = OcrRecordStore(fake_session)
        db_obj = OcrDataDB(object_key="k")

        saved = await store.save(db_obj)

        assert saved is db_obj
        assert fake_session.rows["k"] is db_obj
