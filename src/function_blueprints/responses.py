from typing import Dict, Optional, Type

import azure.functions as func
from pydantic import BaseModel, ValidationError

from src.specs.common.errors import (
    InputValidationError,
    LookbookError,
    MissingCredentialError,
    ResourceNotFoundError,
)
from src.specs.models.http import ErrorResponse

_STATUS_BY_ERROR: Dict[Type[LookbookError], int] = {
    InputValidationError: 400,
    MissingCredentialError: 401,
    ResourceNotFoundError: 404,
}


def json_response(model: BaseModel, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        body=model.model_dump_json(),
        mimetype="application/json",
        status_code=status_code,
    )


def error_response(
    message: str,
    status_code: int,
    *,
    code: Optional[str] = None,
    details: Optional[Dict] = None,
) -> func.HttpResponse:
    err = ErrorResponse(message=message, errorCode=code, details=details or None)
    return json_response(err, status_code)


def from_exception(exc: LookbookError, status_code: Optional[int] = None) -> func.HttpResponse:
    status = status_code or next((s for cls, s in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)
    return error_response(str(exc), status, code=exc.code, details=exc.details)


def validation_message(exc: ValidationError) -> str:
    """First human-readable message of a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    msg = str(first.get("msg", ""))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {msg}" if loc else msg


def parse_body(req: func.HttpRequest, model: Type[BaseModel]) -> BaseModel:
    """Parse and validate a JSON body, raising InputValidationError."""
    try:
        data = req.get_json()
    except ValueError:
        raise InputValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise InputValidationError("Request body must be a JSON object")
    try:
        return model(**data)
    except ValidationError as exc:
        raise InputValidationError(validation_message(exc))
