"""
OCR error types.

Vendor and transport failures abort the pipeline before persistence.
Extraction problems never raise (see ExtractionResult.degraded).
"""

from typing import Optional


class OCRError(Exception):
    """Base exception for the OCR module"""
    pass


class VendorRequestError(OCRError):
    """The OCR vendor answered with an HTTP error status"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"CLOVA OCR returned {status_code}: {body}")


class OCRTransportError(OCRError):
    """The OCR vendor could not be reached"""
    pass


class OCRRequestFailedError(OCRError):
    """
    Generic failure surfaced to callers of perform_ocr.

    `stage` names where the pipeline stopped: "vendor" or "transport".
    """

    def __init__(self, stage: str, message: str, status_code: Optional[int] = None):
        self.stage = stage
        self.status_code = status_code
        super().__init__(message)


class RecordNotFoundError(OCRError):
    """No ocr_data row exists for the object key"""

    def __init__(self, object_key: str):
        self.object_key = object_key
        super().__init__(f"OCR record not found: {object_key}")
