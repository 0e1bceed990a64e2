"""
Application Errors

A single error type carries an HTTP status, a human-readable message and a
machine-readable error code. Services raise it (directly or through
``app_assert``); the handlers registered by ``register_exception_handlers``
turn it into the JSON body every endpoint shares:

    {"error": "<ERROR_CODE>", "message": "<message>"}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sasm_ims.core.cookies import REFRESH_PATH, clear_auth_cookies

logger = logging.getLogger(__name__)


class ErrorCode:
    """Machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_ACCESS_TOKEN = "INVALID_ACCESS_TOKEN"


_DEFAULT_CODES = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.TOO_MANY_REQUESTS,
}


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.headers = headers
        self.error_code = error_code or _DEFAULT_CODES.get(status_code, ErrorCode.BAD_REQUEST)
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


def app_assert(
    condition: Any,
    status_code: int,
    message: str,
    error_code: str | None = None,
) -> None:
    """
    Raise ``AppError`` unless ``condition`` is truthy.

    Example:
        app_assert(user, 404, "User not found")
    """
    if not condition:
        raise AppError(message, error_code=error_code, status_code=status_code)


def _is_refresh_request(request: Request) -> bool:
    return request.url.path == REFRESH_PATH


def _validation_errors(exc: RequestValidationError) -> dict[str, str]:
    """Map pydantic errors to ``{field: message}``, first error per field wins."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) if loc else "request"
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return errors


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}"
        )

    response = JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers
    )
    if _is_refresh_request(request):
        clear_auth_cookies(response)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _validation_errors(exc)
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": ErrorCode.VALIDATION_ERROR,
            "message": "Request validation failed.",
            "errors": errors,
        },
    )
    if _is_refresh_request(request):
        clear_auth_cookies(response)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": ErrorCode.INTERNAL_ERROR,
            "message": "Internal server error.",
        },
    )
    if _is_refresh_request(request):
        clear_auth_cookies(response)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Install the application's error handlers."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "AppError",
    "ErrorCode",
    "app_assert",
    "register_exception_handlers",
]
