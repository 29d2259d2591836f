"""
OCR Core - Configuration Management

Centralized configuration for environment variables and deployment settings.
This module ensures:
- No hardcoded vendor secrets
- No missing required variables in production
- Environment-specific settings (dev/staging/prod)
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type coercion.
    """

    # ==================== ENVIRONMENT ====================
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (auto-enabled in development)"
    )

    # ==================== DATABASE ====================
    DATABASE_URL: str = Field(
        default="",
        description="PostgreSQL connection URL, postgresql+asyncpg://... (required)"
    )
    DATABASE_SSL: str = Field(
        default="require",
        description="asyncpg ssl mode; empty string disables the connect arg"
    )

    # ==================== CLOVA OCR ====================
    CLOVA_OCR_API_URL: str = Field(
        default="",
        description="CLOVA General OCR invoke URL"
    )
    CLOVA_OCR_SECRET_KEY: str = Field(
        default="",
        description="Value sent in the X-OCR-SECRET header"
    )
    CLOVA_OCR_TIMEOUT_SECONDS: float = Field(default=30.0)
    CLOVA_OCR_VERSION: str = Field(default="V2")
    CLOVA_OCR_REQUEST_ID_PREFIX: str = Field(default="dbdr")
    CLOVA_OCR_IMAGE_FORMAT: str = Field(
        default="jpg",
        description="Image format used when the URL has no recognised extension"
    )
    CLOVA_OCR_IMAGE_NAME: str = Field(default="ocr-image")

    # ==================== OBSERVABILITY ====================
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR"
    )

    # ==================== API ====================
    API_TITLE: str = Field(
        default="OCR Core API",
        description="API title for OpenAPI docs"
    )
    API_VERSION: str = Field(
        default="1.0.0",
        description="API version"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    # ==================== COMPUTED PROPERTIES ====================

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def debug_enabled(self) -> bool:
        """Enable debug in development or when explicitly set"""
        return self.DEBUG or self.is_development

    @property
    def clova_ocr_configured(self) -> bool:
        return bool(self.CLOVA_OCR_API_URL and self.CLOVA_OCR_SECRET_KEY)

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration for production deployment.
        Returns list of validation errors.
        """
        errors = []

        # Required variables
        if not self.DATABASE_URL:
            errors.append("DATABASE_URL is required")

        if not self.CLOVA_OCR_API_URL:
            errors.append("CLOVA_OCR_API_URL is required")
        elif not self.CLOVA_OCR_API_URL.startswith("https://"):
            errors.append("CLOVA_OCR_API_URL must use https")

        if not self.CLOVA_OCR_SECRET_KEY:
            errors.append("CLOVA_OCR_SECRET_KEY is required")

        if self.CLOVA_OCR_TIMEOUT_SECONDS <= 0:
            errors.append("CLOVA_OCR_TIMEOUT_SECONDS must be positive")

        # Production-specific checks
        if self.is_production:
            if "localhost" in self.DATABASE_URL.lower():
                errors.append("DATABASE_URL cannot point to localhost in production")

            if self.DEBUG:
                errors.append("DEBUG should be False in production")

        return errors


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Settings are loaded once and cached for the application lifetime.
    """
    settings = Settings()

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.debug_enabled}")
    logger.info(f"CLOVA OCR configured: {settings.clova_ocr_configured}")

    # Validate in production
    if settings.is_production:
        errors = settings.validate_production_config()
        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ValueError(f"Production configuration invalid: {', '.join(errors)}")

    return settings


# ==================== ENVIRONMENT VALIDATION ====================

def validate_environment() -> dict:
    """
    Validate all required environment variables.

    Returns a status dict with validation results.
    """
    settings = get_settings()

    status = {
        "valid": True,
        "environment": settings.ENVIRONMENT,
        "errors": [],
        "warnings": [],
        "variables": {}
    }

    # Check required variables
    required_vars = [
        ("DATABASE_URL", settings.DATABASE_URL),
        ("CLOVA_OCR_API_URL", settings.CLOVA_OCR_API_URL),
        ("CLOVA_OCR_SECRET_KEY", settings.CLOVA_OCR_SECRET_KEY),
    ]

    for name, value in required_vars:
        if not value:
            status["errors"].append(f"{name} is not set")
            status["valid"] = False
        else:
            status["variables"][name] = "✓ Set"

    # Check optional but recommended
    if not settings.SENTRY_DSN:
        status["warnings"].append("Error tracking disabled")
        status["variables"]["SENTRY_DSN"] = "⚠ Not set"
    else:
        status["variables"]["SENTRY_DSN"] = "✓ Set"

    # Production-specific validation
    errors = settings.validate_production_config()
    if errors:
        status["errors"].extend(errors)
        status["valid"] = False

    return status
