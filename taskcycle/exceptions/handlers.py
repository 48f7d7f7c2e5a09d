from fastapi import Request
from fastapi.responses import JSONResponse
from .base import AppException
from taskcycle.core.logging import get_logger

logger = get_logger(__name__)


def _error_body(message: str, details: dict) -> dict:
    return {"error": {"message": message, "details": details}}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method
        }
    )

    headers = {"Retry-After": "5"} if exc.status_code == 503 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions."""
    logger.exception(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )

    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", {})
    )
