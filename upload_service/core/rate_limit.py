"""Shared slowapi limiter for the upload endpoints."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from upload_service.core.config import settings
from upload_service.schemas.response_schema import error_response

limiter = Limiter(key_func=get_remote_address)

upload_rate_limit = settings.upload_rate_limit


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content=error_response(429, "Rate limit exceeded", "RATE_LIMIT_EXCEEDED"),
    )
