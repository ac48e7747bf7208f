"""Exception handlers rendering every error in one JSON shape."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ayursutra.core.exceptions import AppException, InvalidStateTransition, RateLimitException

logger = structlog.get_logger()


def _error_body(request: Request, error: str, kind: str, message: Any, **extra: Any) -> dict:
    return {
        "error": error,
        "kind": kind,
        "message": message,
        "path": str(request.url),
        **extra,
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle domain exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response carrying the exception's kind
    """
    extra: dict[str, Any] = {}
    headers = None

    if isinstance(exc, InvalidStateTransition):
        extra["current_status"] = exc.current
        extra["requested_status"] = exc.target
    if isinstance(exc, RateLimitException) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    logger.warning(
        "request_rejected",
        error=exc.__class__.__name__,
        kind=exc.kind,
        message=exc.message,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.kind, exc.message, **extra),
        headers=headers,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI and dependencies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", "http_error", exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle request validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "ValidationError",
            "validation_error",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions and hide their details from the client."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            "InternalServerError",
            "internal_error",
            "An unexpected error occurred",
        ),
    )
