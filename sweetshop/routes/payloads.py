"""Request body helpers for routes that require a session.

FastAPI decodes declared body parameters before any dependency runs, so a
malformed body would be reported ahead of a missing session. Routes behind
``get_current_user`` or ``require_admin`` instead take the body through
:func:`json_body`, declared after the session dependency, and validate it
with :func:`parse_payload`.
"""

from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from sweetshop.core.errors import NON_FIELD_KEY, FieldValidationError, format_validation_errors

ModelT = TypeVar('ModelT', bound=BaseModel)

JSON_DECODE_MESSAGE = 'JSON decode error'


async def json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return await request.json()
    except ValueError as exc:
        raise FieldValidationError.single(NON_FIELD_KEY, JSON_DECODE_MESSAGE) from exc


def parse_payload(model: type[ModelT], payload: Any) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise FieldValidationError(format_validation_errors(exc.errors())) from exc
