"""
Request size limiting middleware for FastAPI.
Protects the estimate endpoint from oversized payloads.
"""
from typing import Optional, Set
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from workspaces_pricing.core.config import config

logger = logging.getLogger(__name__)


# Endpoints that require size limiting
PROTECTED_ENDPOINTS: Set[str] = {
    "/api/pricing/estimate",
}


def _too_large(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "error": "request_too_large",
            "message": f"Request body size exceeds allowed limit of {limit} bytes.",
        }
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request size limiting.

    Applies the MAX_REQUEST_BODY_SIZE limit only to configured endpoints.
    Other routes pass through untouched.
    """

    def __init__(self, app: ASGIApp, max_body_size: Optional[int] = None):
        super().__init__(app)
        self.max_body_size = max_body_size or config.MAX_REQUEST_BODY_SIZE

    async def dispatch(self, request: Request, call_next):
        """
        Process request and apply the size limit if applicable.

        Args:
            request: FastAPI request object
            call_next: Next middleware or route handler

        Returns:
            Response object
        """
        path = request.url.path

        if path not in PROTECTED_ENDPOINTS:
            return await call_next(request)

        try:
            # Check Content-Length header if present
            content_length = request.headers.get("Content-Length")
            if content_length:
                try:
                    if int(content_length) > self.max_body_size:
                        logger.info(
                            "Request body size exceeded for %s: %s bytes (limit: %d)",
                            path, content_length, self.max_body_size
                        )
                        return _too_large(self.max_body_size)
                except ValueError:
                    # Invalid Content-Length header, measure the body instead
                    pass

            body_bytes = await request.body()
            if len(body_bytes) > self.max_body_size:
                logger.info(
                    "Request body size exceeded for %s: %d bytes (limit: %d)",
                    path, len(body_bytes), self.max_body_size
                )
                return _too_large(self.max_body_size)

            # Restore the body so it is readable downstream
            async def receive():
                return {"type": "http.request", "body": body_bytes}

            request._receive = receive

        except Exception as error:
            # Fail closed on any error
            logger.error("Error during size limiting for %s: %s", path, error, exc_info=True)
            return JSONResponse(
                status_code=413,
                content={
                    "status": "error",
                    "error": "request_too_large",
                    "message": "Request validation failed.",
                }
            )

        return await call_next(request)
