"""
Main FastAPI application bootstrap.
Configures logging and middleware and includes routers.
"""
import logging

from fastapi import FastAPI

from workspaces_pricing.core.config import config
from workspaces_pricing.api.pricing import router as pricing_router
from workspaces_pricing.middleware.request_size_limiter import RequestSizeLimiterMiddleware


# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    raise RuntimeError(f"Configuration error: {error}") from error

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

logger.info(
    "Pricing catalog: %s (timeout %.1fs, %d retries)",
    config.PRICING_CATALOG_BASE_URL,
    config.PRICING_CATALOG_TIMEOUT_SECONDS,
    config.PRICING_CATALOG_MAX_RETRIES
)


app = FastAPI(
    title="WorkSpaces Pricing",
    description="Monthly cost estimates for WorkSpaces and AppStream configurations",
)

app.add_middleware(RequestSizeLimiterMiddleware)

app.include_router(pricing_router)
