"""
Response envelope schemas.

Used to document the shared response shapes in OpenAPI. Handlers build
the envelopes directly; these models describe them.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Envelope for single-record responses."""

    status: Literal["success"] = "success"
    data: Optional[dict[str, Any]] = None


class ListResponse(BaseModel):
    """Envelope for list and aggregation responses."""

    status: Literal["success"] = "success"
    results: int
    data: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    """Envelope for every non-validation error."""

    status: Literal["fail", "error"]
    message: str


class ValidationErrorItem(BaseModel):
    type: str = "field"
    value: Optional[Any] = None
    msg: str
    path: str
    location: str


class ValidationErrorResponse(BaseModel):
    """400 envelope listing every failed request check."""

    status: Literal["fail"] = "fail"
    errors: list[ValidationErrorItem]
