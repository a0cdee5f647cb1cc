"""
Pydantic request schemas for the users API.

Each schema is the validator chain of one route: every check runs, and
all violations are reported together with a 400.
Role and active status default in the stored model, so they are optional
here.
"""

from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, Field

from app.interfaces.documents.validation import (
    RequestBody,
    is_email,
    min_length,
    not_empty,
)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MESSAGE = "Password must be at least 6 characters long"
EMAIL_MESSAGE = "Please include a valid email"

Role = Literal["admin", "user"]


class CreateUserRequest(RequestBody):
    """Request schema for POST /api/users."""

    name: Annotated[Optional[str], AfterValidator(not_empty("Name is required"))] = Field(
        default=None, validate_default=True
    )
    email: Annotated[Optional[str], AfterValidator(is_email(EMAIL_MESSAGE))] = Field(
        default=None, validate_default=True
    )
    password: Annotated[
        Optional[str], AfterValidator(min_length(PASSWORD_MIN_LENGTH, PASSWORD_MESSAGE))
    ] = Field(default=None, validate_default=True)
    role: Optional[Role] = None
    active: Optional[bool] = None


class UpdateUserRequest(RequestBody):
    """Request schema for PATCH /api/users/{id}. Absent fields are left unchanged."""

    name: Annotated[
        Optional[str], AfterValidator(not_empty("Name cannot be empty", optional=True))
    ] = None
    email: Annotated[
        Optional[str], AfterValidator(is_email(EMAIL_MESSAGE, optional=True))
    ] = None
    password: Annotated[
        Optional[str],
        AfterValidator(min_length(PASSWORD_MIN_LENGTH, PASSWORD_MESSAGE, optional=True)),
    ] = None
    role: Optional[Role] = None
    active: Optional[bool] = None


class UpdateRoleRequest(RequestBody):
    """Request schema for PATCH /api/users/update-role."""

    email: Annotated[Optional[str], AfterValidator(is_email("Email is required"))] = Field(
        default=None, validate_default=True
    )
    role: Annotated[Optional[str], AfterValidator(not_empty("Role is required"))] = Field(
        default=None, validate_default=True
    )
