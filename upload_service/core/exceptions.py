"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from upload_service.schemas.response_schema import error_response


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Server misconfiguration (500) ---


class ConfigurationError(AppException):
    """Upload destination or size limit is misconfigured."""

    def __init__(self, message: str = "Upload handler is misconfigured") -> None:
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
        )


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.status_code, exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the unified error shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content=error_response(
            422, f"{location}: {detail}" if location else detail, "VALIDATION_ERROR"
        ),
    )
