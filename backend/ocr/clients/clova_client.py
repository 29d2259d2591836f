"""
CLOVA OCR Client

Builds the General OCR request body and POSTs it to the configured
invoke URL. Authentication is the X-OCR-SECRET header.

Contract:
- CLOVA_OCR_API_URL=<invoke url>/general
- POST with Content-Type: application/json and X-OCR-SECRET headers
- Body: {version, requestId, timestamp, images: [{format, name, url}]}
"""

import time
import uuid
import logging
import httpx
from functools import lru_cache
from typing import Optional, Dict, Any
from urllib.parse import urlparse

from config import get_settings
from ocr.errors import VendorRequestError, OCRTransportError

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-OCR-SECRET"

# Image formats accepted by the General OCR endpoint
SUPPORTED_FORMATS = {"jpg", "jpeg", "png", "pdf", "tif", "tiff"}


class ClovaOCRClient:
    """
    Client for the CLOVA General OCR API.

    Holds no per-call state, so one instance is shared across requests.
    """

    def __init__(
        self,
        api_url: str,
        secret_key: str,
        timeout: float = 30.0,
        version: str = "V2",
        request_id_prefix: str = "dbdr",
        image_format: str = "jpg",
        image_name: str = "ocr-image",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url
        self.secret_key = secret_key
        self.timeout = timeout
        self.version = version
        self.request_id_prefix = request_id_prefix
        self.image_format = image_format
        self.image_name = image_name
        self._transport = transport

        logger.info(f"ClovaOCRClient initialized with URL: {self._safe_url()}")

    def build_request_body(self, image_url: str, name: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the vendor request body for a single image.

        Args:
            image_url: URL the vendor can fetch directly (public or pre-signed)
            name: Image name echoed back by the vendor

        Returns:
            Request body dict
        """
        timestamp = int(time.time() * 1000)

        return {
            "version": self.version,
            "requestId": f"{self.request_id_prefix}-{timestamp}-{uuid.uuid4().hex[:8]}",
            "timestamp": timestamp,
            "images": [
                {
                    "format": self.detect_format(image_url),
                    "name": name or self.image_name,
                    "url": image_url,
                }
            ],
        }

    def detect_format(self, image_url: str) -> str:
        """Use the URL's file extension when the vendor supports it."""
        path = urlparse(image_url).path
        if "." in path.rsplit("/", 1)[-1]:
            ext = path.rsplit(".", 1)[-1].lower()
            if ext in SUPPORTED_FORMATS:
                return ext
        return self.image_format

    async def send(self, request_body: Dict[str, Any]) -> str:
        """
        POST the request body to the OCR endpoint.

        Returns:
            Raw response body

        Raises:
            VendorRequestError: vendor answered 4xx/5xx
            OCRTransportError: network failure or timeout
        """
        headers = {
            "Content-Type": "application/json",
            SECRET_HEADER: self.secret_key,
        }

        logger.info(f"CLOVA OCR REQUEST BODY: {request_body}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, headers=headers, json=request_body)
        except httpx.RequestError as e:
            logger.error(f"CLOVA OCR transport error: {e!r}")
            raise OCRTransportError(str(e) or type(e).__name__) from e

        if response.is_error:
            logger.error(f"CLOVA OCR ERROR BODY: {response.text}")
            raise VendorRequestError(response.status_code, response.text)

        return response.text

    def _safe_url(self) -> str:
        """Invoke URL without its path, which embeds the domain secret."""
        parsed = urlparse(self.api_url)
        return f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else "<not configured>"


@lru_cache(maxsize=1)
def get_clova_client() -> ClovaOCRClient:
    """Process-wide client built from settings."""
    settings = get_settings()
    return ClovaOCRClient(
        api_url=settings.CLOVA_OCR_API_URL,
        secret_key=settings.CLOVA_OCR_SECRET_KEY,
        timeout=settings.CLOVA_OCR_TIMEOUT_SECONDS,
        version=settings.CLOVA_OCR_VERSION,
        request_id_prefix=settings.CLOVA_OCR_REQUEST_ID_PREFIX,
        image_format=settings.CLOVA_OCR_IMAGE_FORMAT,
        image_name=settings.CLOVA_OCR_IMAGE_NAME,
    )
