"""
CLOVA OCR response parsing.

Flattens images[0].fields[].inferText into a single space-joined string.
Parsing is best-effort: a malformed body yields whatever text was collected
and a degraded flag instead of an exception.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Returned when the vendor recognised no text fields
NO_DATA_PLACEHOLDER = "데이터가 없습니다."


@dataclass
class ExtractionResult:
    """Flattened OCR text plus how it was obtained."""
    text: str
    field_count: int = 0
    has_fields: bool = True
    degraded: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _infer_text(field: Any) -> str:
    if not isinstance(field, dict):
        return ""
    value = field.get("inferText")
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def extract_infer_text(response_body: str) -> ExtractionResult:
    """
    Extract recognised text from a raw General OCR response.

    Args:
        response_body: Raw JSON string returned by the vendor

    Returns:
        ExtractionResult; `text` is NO_DATA_PLACEHOLDER when the first image
        has no fields, and `degraded` is set when the body could not be read
    """
    parts = []
    try:
        root = json.loads(response_body)
        fields = root["images"][0].get("fields")

        if not fields:
            logger.warning("OCR response has no 'fields' data")
            return ExtractionResult(text=NO_DATA_PLACEHOLDER, has_fields=False)

        if not isinstance(fields, list):
            raise TypeError(f"'fields' is {type(fields).__name__}, expected list")

        for field in fields:
            parts.append(_infer_text(field))
            parts.append(" ")

    except Exception as e:
        logger.error(f"Failed to extract OCR text: {e!r}")
        return ExtractionResult(
            text="".join(parts).strip(),
            field_count=len(parts) // 2,
            has_fields=bool(parts),
            degraded=True,
            error=str(e) or type(e).__name__
        )

    return ExtractionResult(text="".join(parts).strip(), field_count=len(fields))
