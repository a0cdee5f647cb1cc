"""
Declarative request checks.

Each check is a small callable plugged into a pydantic field with
``AfterValidator``. Checks raise ``PydanticCustomError`` with the exact
client-facing message, so FastAPI collects every violation of a request
before the handler runs and the error handler reports them together.
"""

import re
from collections.abc import Callable, Mapping
from typing import Annotated, Any, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import Body
from fastapi.exceptions import RequestValidationError
from pydantic import AfterValidator, BaseModel, ValidationError, model_validator
from pydantic_core import PydanticCustomError

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

Check = Callable[[Any], Any]


def not_empty(message: str, optional: bool = False) -> Check:
    """Reject missing values and blank strings."""

    def check(value: Optional[str]) -> Optional[str]:
        if value is None and optional:
            return value
        if value is None or not str(value).strip():
            raise PydanticCustomError("not_empty", message)
        return value

    return check


def is_email(message: str, optional: bool = False) -> Check:
    """Require an e-mail-shaped string (syntax only, no DNS lookups)."""

    def check(value: Optional[str]) -> Optional[str]:
        if value is None and optional:
            return value
        try:
            validate_email(value or "", check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("is_email", message) from None
        return value

    return check


def min_length(length: int, message: str, optional: bool = False) -> Check:
    def check(value: Optional[str]) -> Optional[str]:
        if value is None and optional:
            return value
        if value is None or len(value) < length:
            raise PydanticCustomError("min_length", message, {"min_length": length})
        return value

    return check


def is_object_id(message: str = "Invalid ID") -> Check:
    def check(value: str) -> str:
        if not OBJECT_ID_PATTERN.match(value):
            raise PydanticCustomError("is_object_id", message)
        return value

    return check


DocumentId = Annotated[str, AfterValidator(is_object_id())]


class RequestBody(BaseModel):
    """Base for request body schemas.

    A body that is not a JSON object is validated as ``{}``, so every
    field check still runs and reports its own message.
    """

    @model_validator(mode="before")
    @classmethod
    def _object_only(cls, data: Any) -> Any:
        return data if isinstance(data, Mapping) else {}


def parse_body(schema: type[BaseModel], payload: Optional[BaseModel]) -> BaseModel:
    """Return ``payload``, or validate an empty object when the request had no body.

    Raises:
        RequestValidationError: With one item per failed field check.
    """
    if payload is not None:
        return payload
    try:
        return schema.model_validate({})
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]
        ) from None


def require_body(schema: type[BaseModel]) -> Callable[..., None]:
    """Build a route dependency that validates the body against ``schema``.

    For routes whose handler does not consume the body but must still
    reject invalid requests with a 400.
    """

    def validate_body(payload: Optional[schema] = Body(default=None)) -> None:
        parse_body(schema, payload)

    return validate_body
