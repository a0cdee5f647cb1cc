"""
Tests for the input sanitizer, request checks and error envelope helpers.
"""

import pytest
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from app.domain.documents.errors import AppError
from app.interfaces.documents.validation import (
    DocumentId,
    is_email,
    min_length,
    not_empty,
    parse_body,
)
from app.interfaces.users.schemas import (
    CreateUserRequest,
    UpdateRoleRequest,
    UpdateUserRequest,
)
from app.shared.errors.handlers import GENERIC_MESSAGE, error_body
from app.shared.security.sanitize import is_unsafe_key, sanitize


class TestSanitize:
    @pytest.mark.parametrize("key", ["$gt", "$where", "a.b", "profile.name"])
    def test_unsafe_keys(self, key) -> None:
        assert is_unsafe_key(key)

    @pytest.mark.parametrize("key", ["name", "age[gte]", "price$"])
    def test_safe_keys(self, key) -> None:
        assert not is_unsafe_key(key)

    def test_removes_unsafe_keys_at_every_depth(self) -> None:
        payload = {
            "name": "John",
            "$where": "sleep(1000)",
            "email": {"$gt": ""},
            "tags": [{"ok": 1, "a.b": 2}],
        }
        assert sanitize(payload) == {
            "name": "John",
            "email": {},
            "tags": [{"ok": 1}],
        }

    def test_input_is_not_mutated(self) -> None:
        payload = {"$ne": 1, "x": {"$gt": 2}}
        sanitize(payload)
        assert payload == {"$ne": 1, "x": {"$gt": 2}}

    def test_scalars_pass_through(self) -> None:
        assert sanitize("$literal") == "$literal"
        assert sanitize(5) == 5


class _Probe(BaseModel):
    id: DocumentId


class TestChecks:
    def test_object_id_accepts_24_hex(self) -> None:
        assert _Probe(id="65a1b2c3d4e5f60718293a4b").id == "65a1b2c3d4e5f60718293a4b"

    @pytest.mark.parametrize("value", ["123", "zzzzzzzzzzzzzzzzzzzzzzzz", "65a1b2c3d4e5f60718293a4b0"])
    def test_object_id_rejects(self, value) -> None:
        with pytest.raises(ValidationError) as info:
            _Probe(id=value)
        assert info.value.errors()[0]["msg"] == "Invalid ID"

    def test_not_empty(self) -> None:
        check = not_empty("Name is required")
        assert check("John") == "John"
        with pytest.raises(PydanticCustomError, match="Name is required"):
            check("   ")
        with pytest.raises(PydanticCustomError, match="Name is required"):
            check(None)

    def test_optional_checks_accept_none(self) -> None:
        assert not_empty("x", optional=True)(None) is None
        assert is_email("x", optional=True)(None) is None
        assert min_length(6, "x", optional=True)(None) is None

    def test_is_email(self) -> None:
        check = is_email("Please include a valid email")
        assert check("john@example.com") == "john@example.com"
        with pytest.raises(PydanticCustomError, match="Please include a valid email"):
            check("john@")

    def test_min_length(self) -> None:
        check = min_length(6, "too short")
        assert check("123456") == "123456"
        with pytest.raises(PydanticCustomError, match="too short"):
            check("12345")

    def test_update_schema_tracks_set_fields(self) -> None:
        payload = UpdateUserRequest(email="new@example.com")
        assert payload.model_dump(exclude_unset=True) == {"email": "new@example.com"}


class TestErrorBody:
    def test_operational_error_keeps_message(self) -> None:
        assert error_body(AppError("Document not found", 404)) == (
            404,
            {"status": "fail", "message": "Document not found"},
        )

    def test_unknown_error_is_hidden(self) -> None:
        assert error_body(RuntimeError("password=hunter2")) == (
            500,
            {"status": "error", "message": GENERIC_MESSAGE},
        )

    def test_foreign_error_with_status_code(self) -> None:
        class Upstream(Exception):
            status_code = 503
            status = "error"
            is_operational = True
            message = "Upstream unavailable"

        assert error_body(Upstream()) == (
            503,
            {"status": "error", "message": "Upstream unavailable"},
        )


class TestRequestBody:
    def test_missing_body_runs_every_field_check(self) -> None:
        with pytest.raises(RequestValidationError) as info:
            parse_body(CreateUserRequest, None)
        errors = info.value.errors()
        assert [e["loc"] for e in errors] == [
            ("body", "name"),
            ("body", "email"),
            ("body", "password"),
        ]
        assert errors[0]["msg"] == "Name is required"

    def test_present_body_is_returned(self) -> None:
        payload = UpdateUserRequest(name="John")
        assert parse_body(UpdateUserRequest, payload) is payload

    def test_missing_optional_body_is_empty(self) -> None:
        payload = parse_body(UpdateUserRequest, None)
        assert payload.model_dump(exclude_unset=True) == {}

    def test_non_object_input_is_validated_as_empty(self) -> None:
        with pytest.raises(ValidationError) as info:
            UpdateRoleRequest.model_validate(["admin"])
        assert sorted(e["msg"] for e in info.value.errors()) == [
            "Email is required",
            "Role is required",
        ]
