"""
OCR Core - OCR Data Database Models

Tables:
- ocr_data: one row per registered image, keyed by the external object key,
  holding the flattened OCR text once recognition completes
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime

from database.connection import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OcrDataDB(Base):
    """
    OCR record for an uploaded image.

    Created with an empty result when the image is registered,
    updated once the vendor OCR call completes.
    """
    __tablename__ = "ocr_data"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    object_key = Column(String(512), nullable=False, unique=True, index=True)
    ocr_result = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        result_len = len(self.ocr_result) if self.ocr_result else 0
        return f"<OcrDataDB object_key={self.object_key!r} result_len={result_len}>"
