"""
OCR record persistence.

Create/update/lookup of ocr_data rows keyed by object_key.
Each write commits its own transaction and rolls back on failure.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.ocr_models import OcrDataDB, utc_now
from ocr.errors import RecordNotFoundError

logger = logging.getLogger(__name__)


class OcrRecord(BaseModel):
    """OCR record as returned to callers"""
    object_key: str
    ocr_result: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _db_to_record(db_obj: OcrDataDB) -> OcrRecord:
    return OcrRecord(
        object_key=db_obj.object_key,
        ocr_result=db_obj.ocr_result,
        created_at=db_obj.created_at,
        updated_at=db_obj.updated_at,
    )


class OcrRecordStore:
    """Repository for OCR records"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_object_key(self, object_key: str) -> Optional[OcrDataDB]:
        """Look up a row by object key; None when absent."""
        result = await self.session.execute(
            select(OcrDataDB).where(OcrDataDB.object_key == object_key)
        )
        return result.scalar_one_or_none()

    async def save(self, record: OcrDataDB) -> OcrDataDB:
        self.session.add(record)
        await self.session.flush()
        return record

    async def get(self, object_key: str) -> OcrRecord:
        db_obj = await self.find_by_object_key(object_key)
        if db_obj is None:
            raise RecordNotFoundError(object_key)
        return _db_to_record(db_obj)

    async def create(self, object_key: str) -> OcrRecord:
        """
        Insert a new record with an empty result.

        Raises:
            IntegrityError: object_key already registered
        """
        try:
            db_obj = await self.save(OcrDataDB(object_key=object_key))
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"New OCR record saved: {db_obj!r}")
        return _db_to_record(db_obj)

    async def update(self, object_key: str, ocr_result: str) -> OcrRecord:
        """
        Store the OCR text on an existing record.

        Raises:
            RecordNotFoundError: no record for object_key
        """
        try:
            db_obj = await self.find_by_object_key(object_key)
            if db_obj is None:
                raise RecordNotFoundError(object_key)

            db_obj.ocr_result = ocr_result
            db_obj.updated_at = utc_now()
            await self.save(db_obj)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"OCR record updated: {db_obj!r}")
        return _db_to_record(db_obj)
