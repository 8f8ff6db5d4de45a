"""
Error taxonomy and the handlers that render every failure as ``{msg, errors?}``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Application failure carrying the HTTP status it maps to."""

    status_code = 500
    default_message = "Server error"

    def __init__(
        self, message: Optional[str] = None, errors: Optional[list[str]] = None
    ):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation Error"


class InvalidId(AppError):
    status_code = 400
    default_message = "Invalid ID format"


class InvalidCredentials(AppError):
    status_code = 400
    default_message = "Invalid credentials"


class Conflict(AppError):
    status_code = 400
    default_message = "Resource already exists"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Token invalid"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ServerError(AppError):
    status_code = 500
    default_message = "Server error"


class StorageError(ServerError):
    default_message = "Storage error"


def _error_body(message: str, errors: Optional[list[str]] = None) -> dict:
    body: dict = {"msg": message}
    if errors:
        body["errors"] = errors
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.__cause__ or exc,
        )
        # Internal detail stays in the log.
        message = exc.default_message
    else:
        message = exc.message
    return JSONResponse(
        status_code=exc.status_code, content=_error_body(message, exc.errors)
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=400, content=_error_body("Validation Error", errors)
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("Server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
