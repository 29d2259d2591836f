"""
Internal Service Authentication

API key-based authentication for service-to-service calls into the OCR API.

Environment Variables:
    INTERNAL_API_KEY: Primary API key for internal services
    INTERNAL_API_KEYS: Comma-separated list of valid keys (for key rotation)

Usage:
    @router.post("/ocr/perform")
    async def perform(
        data: PerformRequest,
        service: InternalService = Depends(require_internal_service)
    ):
        ...

Headers:
    X-Internal-Api-Key: <api_key>
    X-Service-Name: <service_name> (optional, for logging)
"""

import os
import secrets
import logging
from typing import Optional, Set
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request, HTTPException, status, Depends
from fastapi.security import APIKeyHeader

logger = logging.getLogger(__name__)

# Header names
API_KEY_HEADER = "X-Internal-Api-Key"
SERVICE_NAME_HEADER = "X-Service-Name"

# Environment variable names
INTERNAL_API_KEY_ENV = "INTERNAL_API_KEY"
INTERNAL_API_KEYS_ENV = "INTERNAL_API_KEYS"


@dataclass
class InternalService:
    """Represents an authenticated internal service"""
    name: str
    api_key_hash: str  # Last 8 chars of key for logging
    is_authenticated: bool = True


@lru_cache(maxsize=1)
def _get_valid_api_keys() -> Set[str]:
    """
    Get set of valid API keys from environment.
    Cached; call _get_valid_api_keys.cache_clear() after changing the env.
    """
    keys = set()

    primary_key = os.environ.get(INTERNAL_API_KEY_ENV)
    if primary_key:
        keys.add(primary_key.strip())

    additional_keys = os.environ.get(INTERNAL_API_KEYS_ENV, "")
    for key in additional_keys.split(","):
        key = key.strip()
        if key:
            keys.add(key)

    if not keys:
        logger.warning("No internal API keys configured - internal auth disabled")

    return keys


def validate_internal_key(api_key: str) -> bool:
    """Validate an internal API key."""
    if not api_key:
        return False

    valid_keys = _get_valid_api_keys()

    # Constant-time comparison to prevent timing attacks
    for valid_key in valid_keys:
        if secrets.compare_digest(api_key, valid_key):
            return True

    return False


api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


async def get_internal_service(
    request: Request,
    api_key: Optional[str] = Depends(api_key_header)
) -> InternalService:
    """
    FastAPI dependency to authenticate internal service requests.

    Raises:
        HTTPException: 503 when no keys are configured, 401 when the key is
        missing, 403 when it is invalid
    """
    service_name = request.headers.get(SERVICE_NAME_HEADER, "unknown")

    if not _get_valid_api_keys():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Internal authentication not configured"
        )

    if not api_key:
        logger.warning(f"Missing API key from service: {service_name}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing internal API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if not validate_internal_key(api_key):
        logger.warning(f"Invalid API key from service: {service_name}, key ending: ...{api_key[-8:]}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid internal API key"
        )

    return InternalService(
        name=service_name,
        api_key_hash=f"...{api_key[-8:]}"
    )


require_internal_service = get_internal_service
