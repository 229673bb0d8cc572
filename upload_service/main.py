"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from upload_service.api.pages.upload_page import router as page_router
from upload_service.api.v1.upload_router import router as upload_router
from upload_service.core.config import settings
from upload_service.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from upload_service.core.rate_limit import limiter, rate_limit_exceeded_handler
from upload_service.schemas.response_schema import ApiResponse, success_response

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    upload = settings.file_upload
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        url=settings.server.url,
        upload_dir=str(upload.upload_dir),
        max_file_size=upload.max_file_size,
        type_checking=not upload.allow_all_types,
    )
    if settings.app.is_development:
        upload.upload_dir.mkdir(parents=True, exist_ok=True)
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Multi-file upload form with size, type and filename checks",
    version=settings.app.version,
    lifespan=lifespan,
    debug=settings.app.debug,
)

app.state.limiter = limiter

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

app.add_middleware(SlowAPIMiddleware)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


# Register routers
app.include_router(page_router)
app.include_router(upload_router)


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "upload_service.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.is_development,
    )


if __name__ == "__main__":
    run()
