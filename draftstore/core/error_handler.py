"""
Exception handlers that render every failure as a structured error body:

    {"error": <kind>, "message": <text>}
"""

import logging
from typing import Any, Dict

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from draftstore.core import exceptions

logger = logging.getLogger(__name__)

# Kinds for HTTP errors raised by the framework itself (unknown route, bad method...)
_STATUS_KINDS: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "ValidationError",
    status.HTTP_401_UNAUTHORIZED: "AuthenticationError",
    status.HTTP_403_FORBIDDEN: "AuthorizationError",
    status.HTTP_404_NOT_FOUND: "NotFoundError",
    status.HTTP_405_METHOD_NOT_ALLOWED: "MethodNotAllowed",
    status.HTTP_409_CONFLICT: "ConflictError",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "UnsupportedMediaTypeError",
}

_APP_ERRORS = (
    exceptions.ValidationError,
    exceptions.AuthenticationError,
    exceptions.AuthorizationError,
    exceptions.NotFoundError,
    exceptions.ConflictError,
    exceptions.UnsupportedMediaTypeError,
    exceptions.DatabaseError,
)


def error_body(kind: str, message: Any, **extra: Any) -> Dict[str, Any]:
    body = {"error": kind, "message": message}
    body.update(extra)
    return body


def error_kind(exc: StarletteHTTPException) -> str:
    if isinstance(exc, _APP_ERRORS):
        return type(exc).__name__
    return _STATUS_KINDS.get(exc.status_code, "HTTPError")


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTPException subclasses (ours and the framework's)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(error_kind(exc), exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed JSON, missing fields and bad query params are all bad requests."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "ValidationError",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger.error(
        f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc
    )
    error = exceptions.DatabaseError()
    return JSONResponse(
        status_code=error.status_code,
        content=error_body("DatabaseError", error.detail),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("InternalServerError", "Internal server error"),
    )
