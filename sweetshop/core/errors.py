"""Error taxonomy and the handlers that turn it into JSON responses.

Every failure the API reports is an ``HTTPException`` subclass so routes,
dependencies and services can raise them directly. The handlers registered
by :func:`register_exception_handlers` render them as either
``{"errors": {field: [messages]}}`` for field validation problems or
``{"error": detail}`` for everything else.
"""

import logging
from typing import Any, Iterable

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_DETAIL = 'Database unavailable. Please try again later.'
INTERNAL_ERROR_DETAIL = 'Internal server error'
NON_FIELD_KEY = '_'


class FieldValidationError(HTTPException):
    def __init__(self, errors: dict[str, list[str]]):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail='Validation failed')
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> 'FieldValidationError':
        return cls({field: [message]})


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = 'Authentication required'):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = 'Forbidden'):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = 'Not found'):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str = 'Conflict'):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InsufficientStock(HTTPException):
    def __init__(self, detail: str = 'Insufficient stock'):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidReference(HTTPException):
    def __init__(self, detail: str = 'Invalid category'):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class StoreUnavailable(HTTPException):
    def __init__(self, detail: str = STORE_UNAVAILABLE_DETAIL):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> dict[str, list[str]]:
    """Group pydantic error entries by the field they refer to.

    The request location prefix (``body``, ``query``, ``path``) is skipped so
    the key is the field name as the client sent it. Errors without a named
    field (whole-body problems, positional locations) are filed under ``_``.
    """
    grouped: dict[str, list[str]] = {}
    for error in errors:
        location = [part for part in error.get('loc', ()) if part not in ('body', 'query', 'path')]
        key = location[0] if location and isinstance(location[0], str) else NON_FIELD_KEY
        message = error.get('msg', 'Invalid value')
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        grouped.setdefault(key, []).append(message)
    return grouped


async def field_validation_error_handler(request: Request, exc: FieldValidationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'errors': exc.errors})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'errors': format_validation_errors(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception('Store failure while handling %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'error': STORE_UNAVAILABLE_DETAIL},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error while handling %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': INTERNAL_ERROR_DETAIL},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FieldValidationError, field_validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
