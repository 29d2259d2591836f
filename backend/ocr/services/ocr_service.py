"""
OCR Service

Runs an image URL through CLOVA General OCR and stores the flattened text
on the matching ocr_data record.

Flow:
1. Build the vendor request body for the image URL
2. POST it to the OCR endpoint
3. Flatten images[0].fields[].inferText into one string
4. Update the record for the object key
5. Return the extracted text

Vendor and transport failures stop the flow before step 4. There is no
compensating action if step 4 fails after a successful vendor call.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ocr.clients.clova_client import ClovaOCRClient, get_clova_client
from ocr.errors import VendorRequestError, OCRTransportError, OCRRequestFailedError
from ocr.services.record_store import OcrRecordStore, OcrRecord
from ocr.services.response_parser import extract_infer_text
from sentry_integration import set_tag

logger = logging.getLogger(__name__)


@dataclass
class OCRResult:
    """Outcome of a successful perform_ocr call."""
    object_key: str
    text: str
    degraded: bool = False
    has_fields: bool = True
    request_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class OCRService:
    """
    OCR orchestration for one database session.

    The vendor client is shared; the session is per request.
    """

    def __init__(self, db: AsyncSession, client: Optional[ClovaOCRClient] = None):
        self.db = db
        self.client = client or get_clova_client()
        self.store = OcrRecordStore(db)

    async def create_ocr_record(self, object_key: str) -> OcrRecord:
        """Register an image; called when its URL is first stored."""
        record = await self.store.create(object_key)
        logger.info(
            "OCR event: ocr.record.created",
            extra={"event": "ocr.record.created", "object_key": object_key}
        )
        return record

    async def get_ocr_record(self, object_key: str) -> OcrRecord:
        return await self.store.get(object_key)

    async def perform_ocr(self, image_url: str, object_key: str) -> OCRResult:
        """
        Run OCR for an image and persist the text.

        Args:
            image_url: URL the vendor can fetch directly (public or pre-signed)
            object_key: object_key of the ocr_data record to update

        Returns:
            OCRResult whose text equals the persisted value

        Raises:
            OCRRequestFailedError: vendor error status or transport failure
            RecordNotFoundError: no record for object_key
        """
        request_body = self.client.build_request_body(image_url, name=object_key)
        request_id = request_body["requestId"]

        logger.info(
            "OCR event: ocr.perform.started",
            extra={"event": "ocr.perform.started", "object_key": object_key, "ocr_request_id": request_id}
        )

        try:
            response_body = await self.client.send(request_body)
        except VendorRequestError as e:
            self._log_failure(object_key, request_id, "vendor", str(e))
            raise OCRRequestFailedError(
                "vendor", f"CLOVA OCR request failed: {e.body}", status_code=e.status_code
            ) from e
        except OCRTransportError as e:
            self._log_failure(object_key, request_id, "transport", str(e))
            raise OCRRequestFailedError("transport", f"CLOVA OCR request failed: {e}") from e

        extraction = extract_infer_text(response_body)
        if extraction.degraded:
            logger.warning(
                f"OCR extraction degraded for {object_key}: {extraction.error}",
                extra={"event": "ocr.extract.degraded", "object_key": object_key}
            )

        await self.store.update(object_key, extraction.text)

        logger.info(
            "OCR event: ocr.perform.completed",
            extra={
                "event": "ocr.perform.completed",
                "object_key": object_key,
                "ocr_request_id": request_id,
                "field_count": extraction.field_count,
                "degraded": extraction.degraded,
            }
        )

        return OCRResult(
            object_key=object_key,
            text=extraction.text,
            degraded=extraction.degraded,
            has_fields=extraction.has_fields,
            request_id=request_id,
        )

    def _log_failure(self, object_key: str, request_id: str, stage: str, error: str):
        logger.error(
            f"OCR request failed: {error}",
            extra={
                "event": "ocr.perform.failed",
                "object_key": object_key,
                "ocr_request_id": request_id,
                "stage": stage,
            }
        )
        set_tag("ocr.stage", stage)
