"""
OCR Module

Image OCR through the CLOVA General OCR API.
- Sends an image URL to the vendor
- Flattens recognised text fragments into one string
- Stores the text on the ocr_data record for the object key
"""

from ocr.services.ocr_service import OCRService, OCRResult
from ocr.endpoints.ocr_api import router as ocr_router

__all__ = [
    'OCRService',
    'OCRResult',
    'ocr_router'
]
