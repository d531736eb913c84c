"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation and unexpected) and return one JSON shape:

    {"error": "<user-facing message>", "code": "<machine code>", "request_id": "..."}

Design:
- ValidationAppError / RequestValidationError → 400
- RateLimitAppError / QuotaExceededAppError → 429
- OriginNotAllowedAppError → 403
- LLMAppError → 500
- Unexpected Exception → generic 500 (safety net)
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    LLMAppError,
    OriginNotAllowedAppError,
    QuotaExceededAppError,
    RateLimitAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

INVALID_PROMPT_MESSAGE = "Invalid prompt."
INVALID_PARAMETERS_MESSAGE = "Invalid parameters."


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code."""
    if isinstance(exc, (RateLimitAppError, QuotaExceededAppError)):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(exc, OriginNotAllowedAppError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, LLMAppError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def _error_body(message: str, code: str, details: Any | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": message,
        "code": code,
        "request_id": get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        body["details"] = details
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = exc.headers if isinstance(exc, RateLimitAppError) else None

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.message, exc.code, exc.details),
        headers=headers or None,
    )


def _failing_fields(exc: RequestValidationError) -> list[str]:
    fields: list[str] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return fields


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn FastAPI/pydantic body validation failures into 400 responses.

    A failing ``prompt`` gets its own message; anything else is reported as
    invalid parameters. Field names are returned, submitted values are not.
    """
    fields = _failing_fields(exc)
    prompt_failed = any(f == "prompt" or f.startswith("prompt.") for f in fields)
    if prompt_failed:
        code, message = "invalid_prompt", INVALID_PROMPT_MESSAGE
    else:
        code, message = "invalid_parameters", INVALID_PARAMETERS_MESSAGE

    logger.warning(
        "request_validation_failed",
        extra={
            "error_code": code,
            "fields": fields,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(message, code, {"fields": fields}),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message; no stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "An unexpected error occurred. Please try again later.",
            "internal_server_error",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
