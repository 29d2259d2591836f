"""
OCR API Endpoints

REST API for image OCR:
- GET  /api/ocr/status - Module status
- POST /api/ocr/records - Register an object key
- GET  /api/ocr/records/{object_key} - Fetch a record
- POST /api/ocr/perform - Run OCR for an image URL and store the text

Flow for /perform:
1. Validate the image URL
2. Send it to CLOVA OCR
3. Flatten the recognised text
4. Store it on the record for the object key
5. Return the text
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database.connection import get_db
from middleware.internal_auth import InternalService, require_internal_service
from ocr.errors import OCRRequestFailedError, RecordNotFoundError
from ocr.services.ocr_service import OCRService
from ocr.services.record_store import OcrRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["OCR"])


# ==================== Request/Response Models ====================

class OCRRecordCreateRequest(BaseModel):
    """Request to register an image for OCR."""
    object_key: str = Field(..., min_length=1, max_length=512, description="External object key")


class OCRPerformRequest(BaseModel):
    """Request to run OCR on an image."""
    image_url: str = Field(..., description="Image URL reachable by the OCR vendor")
    object_key: str = Field(..., min_length=1, max_length=512, description="Record to update")


class OCRPerformResponse(BaseModel):
    """Response from an OCR run."""
    success: bool
    object_key: str
    text: str
    degraded: bool = False
    has_fields: bool = True
    request_id: Optional[str] = None


class OCRStatusResponse(BaseModel):
    """Module status response."""
    module: str
    status: str
    version: str
    features: dict
    timestamp: str


# ==================== Dependencies ====================

def get_ocr_service(db: AsyncSession = Depends(get_db)) -> OCRService:
    return OCRService(db)


def is_valid_image_url(image_url: str) -> bool:
    """Absolute HTTP(S) URL with a host."""
    if not image_url:
        return False
    parsed = urlparse(image_url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# ==================== Endpoints ====================

@router.get("/status", response_model=OCRStatusResponse, summary="Module status")
async def get_module_status():
    """
    Get OCR module status.

    No authentication required.
    """
    settings = get_settings()

    return OCRStatusResponse(
        module="ocr",
        status="operational" if settings.clova_ocr_configured else "degraded",
        version=settings.API_VERSION,
        features={
            "provider": "clova",
            "vendor_configured": settings.clova_ocr_configured,
            "image_formats": ["jpg", "jpeg", "png", "pdf", "tif", "tiff"],
        },
        timestamp=datetime.now(timezone.utc).isoformat()
    )


@router.post(
    "/records",
    response_model=OcrRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Register object key"
)
async def create_record(
    request: OCRRecordCreateRequest,
    service: OCRService = Depends(get_ocr_service),
    _auth: InternalService = Depends(require_internal_service)
):
    """Create an empty OCR record for an uploaded image."""
    try:
        return await service.create_ocr_record(request.object_key)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"OCR record already exists: {request.object_key}"
        )


@router.get("/records/{object_key:path}", response_model=OcrRecord, summary="Get OCR record")
async def get_record(
    object_key: str,
    service: OCRService = Depends(get_ocr_service),
    _auth: InternalService = Depends(require_internal_service)
):
    try:
        return await service.get_ocr_record(object_key)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/perform", response_model=OCRPerformResponse, summary="Run OCR")
async def perform_ocr(
    request: OCRPerformRequest,
    service: OCRService = Depends(get_ocr_service),
    _auth: InternalService = Depends(require_internal_service)
):
    """
    Run OCR for an image URL and store the text on the record.

    Requires internal API key authentication.
    """
    if not is_valid_image_url(request.image_url):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid image URL. Must be a valid HTTP(S) URL."
        )

    try:
        result = await service.perform_ocr(request.image_url, request.object_key)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except OCRRequestFailedError as e:
        raise HTTPException(
            status_code=(
                status.HTTP_502_BAD_GATEWAY if e.stage == "vendor"
                else status.HTTP_503_SERVICE_UNAVAILABLE
            ),
            detail={"stage": e.stage, "message": str(e)}
        )

    return OCRPerformResponse(success=True, **result.to_dict())
