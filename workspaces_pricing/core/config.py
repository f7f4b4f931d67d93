"""
Configuration module for loading environment variables.
Pricing catalog endpoints, timeouts and calculation constants live here.
"""
import os


class Config:
    """Application configuration loaded from environment variables."""

    # Pricing catalog (public calculator price files)
    PRICING_CATALOG_BASE_URL: str = os.getenv(
        "PRICING_CATALOG_BASE_URL",
        "https://calculator.aws/pricing/2.0/meteredUnitMaps"
    ).rstrip("/")  # Normalize: URL segments are joined with "/"
    PRICING_CATALOG_TIMEOUT_SECONDS: float = float(os.getenv("PRICING_CATALOG_TIMEOUT_SECONDS", "10"))
    PRICING_CATALOG_MAX_RETRIES: int = int(os.getenv("PRICING_CATALOG_MAX_RETRIES", "1"))

    # Request defaults
    DEFAULT_ROOT_VOLUME_GIB: int = int(os.getenv("DEFAULT_ROOT_VOLUME_GIB", "80"))
    DEFAULT_USER_VOLUME_GIB: int = int(os.getenv("DEFAULT_USER_VOLUME_GIB", "100"))

    # Service settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    MAX_REQUEST_BODY_SIZE: int = int(os.getenv("MAX_REQUEST_BODY_SIZE", "65536"))  # 64 KB

    # Calculation constants
    HOURS_PER_MONTH: int = 730  # Standard assumption: 24/7 operation
    WEEKS_PER_MONTH: float = 4.35  # 730 hours/month / 168 hours/week
    AUTOSTOP_HOURS_PER_MONTH: int = 160  # Typical business usage for AutoStop

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if not cls.PRICING_CATALOG_BASE_URL:
            raise ValueError("PRICING_CATALOG_BASE_URL is required")
        if not cls.PRICING_CATALOG_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"PRICING_CATALOG_BASE_URL must be a valid URL (got: {cls.PRICING_CATALOG_BASE_URL})"
            )

        if cls.PRICING_CATALOG_TIMEOUT_SECONDS <= 0:
            raise ValueError("PRICING_CATALOG_TIMEOUT_SECONDS must be positive")
        if cls.PRICING_CATALOG_MAX_RETRIES < 0:
            raise ValueError("PRICING_CATALOG_MAX_RETRIES must not be negative")

        if cls.DEFAULT_ROOT_VOLUME_GIB <= 0 or cls.DEFAULT_USER_VOLUME_GIB <= 0:
            raise ValueError("Default volume sizes must be positive")

        if cls.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL is not a logging level (got: {cls.LOG_LEVEL})")


config = Config()
