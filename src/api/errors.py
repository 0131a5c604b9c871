"""Translation of errors into the uniform error envelope.

Domain errors propagate unchanged out of the service layer; this module is
the single place where they become HTTP status codes.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, FieldError
from domain.model.errors import (
    DomainError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateError: status.HTTP_409_CONFLICT,
}

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Location prefixes FastAPI puts in front of the field name
_LOCATION_SOURCES = {'body', 'query', 'path', 'header', 'cookie'}


def error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: list[FieldError] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        status_code=status_code,
        message=message,
        errors=errors,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode='json', by_alias=True, exclude_none=True),
    )


def _field_name(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_SOURCES:
        parts = parts[1:]
    return '.'.join(parts)


def _domain_status(exc: DomainError) -> int:
    for error_type, status_code in DOMAIN_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = _domain_status(exc)
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Unhandled domain error", extra={"path": request.url.path, "error": str(exc)})
        return error_response(request, status_code, INTERNAL_ERROR_MESSAGE)

    errors = None
    if isinstance(exc, ValidationError) and exc.field:
        errors = [FieldError(field=exc.field, message=exc.message)]
    return error_response(request, status_code, str(exc), errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        FieldError(field=_field_name(err.get('loc', ())), message=err.get('msg', 'Invalid value'))
        for err in exc.errors()
    ]
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(request, exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=exc, extra={"path": request.url.path})
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
