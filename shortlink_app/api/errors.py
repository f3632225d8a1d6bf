"""
Maps link service errors to HTTP responses.

Every failure leaves the service as the same envelope:
    {"success": false, "error": {"code": "...", "message": "..."}}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shortlink_app.exceptions import (
    LinkServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    GoneError,
    DatabaseError,
)
from shortlink_app.schemas.link import ApiErrorBody, ApiErrorDetail

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"

# Checked in order; first matching class wins
ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (ConflictError, status.HTTP_409_CONFLICT, "CONFLICT"),
    (GoneError, status.HTTP_410_GONE, "GONE"),
]


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ApiErrorBody(error=ApiErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def to_error_response(exc: LinkServiceError) -> JSONResponse:
    if isinstance(exc, DatabaseError):
        # The only place the store's own error text is written anywhere
        logger.error("database error: %r", exc.cause, exc_info=exc.cause)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "internal error")

    for error_class, status_code, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return error_response(status_code, code, exc.message)

    logger.error("internal error: %r", exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "internal error")


async def link_service_error_handler(request: Request, exc: LinkServiceError) -> JSONResponse:
    return to_error_response(exc)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else "invalid request body"
    return error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "internal error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LinkServiceError, link_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
