"""
Shared pytest fixtures.

Runs the application with ENVIRONMENT=test (no MongoDB connection) and
swaps the user model for an in-memory DocumentModel double.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Optional  # noqa: E402

import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pydantic import BaseModel, ValidationError  # noqa: E402
from pymongo.errors import DuplicateKeyError  # noqa: E402

from app.domain.documents.errors import DocumentValidationError  # noqa: E402
from app.domain.documents.ports import Document, DocumentModel, Populate  # noqa: E402
from app.domain.documents.query import (  # noqa: E402
    Compare,
    ComparisonOperator,
    FilterTerm,
    QueryDescriptor,
)
from app.infrastructure.users.user_model import UserDocument  # noqa: E402
from app.interfaces.users.dependencies import get_user_model  # noqa: E402
from app.main import app  # noqa: E402
from app.shared.security.rate_limiting import limiter  # noqa: E402

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

_COMPARATORS = {
    ComparisonOperator.GTE: lambda a, b: a >= b,
    ComparisonOperator.GT: lambda a, b: a > b,
    ComparisonOperator.LTE: lambda a, b: a <= b,
    ComparisonOperator.LT: lambda a, b: a < b,
}


def _cast(raw: Any, like: Any) -> Any:
    """Cast a raw query value to the type of a stored value."""
    if isinstance(like, bool):
        return str(raw).lower() == "true"
    if isinstance(like, datetime):
        return datetime.fromisoformat(str(raw))
    if isinstance(like, (int, float)):
        return float(raw)
    return raw


class InMemoryDocumentModel(DocumentModel):
    """DocumentModel double storing records in a dict.

    Mirrors the Mongo adapter's contract: schema validation, unique keys,
    timestamps, hidden fields and the subset of aggregation used by the
    routes ($match on equality, $group with $sum).
    """

    def __init__(
        self,
        schema: type[BaseModel] = UserDocument,
        name: str = "User",
        hidden_fields: tuple[str, ...] = ("password",),
        unique_fields: tuple[str, ...] = ("email",),
    ) -> None:
        self.name = name
        self.records: dict[str, Document] = {}
        self._schema = schema
        self._hidden = set(hidden_fields)
        self._unique = unique_fields
        self._ticks = 0

    # ── Port operations ──────────────────────────────────────────────

    async def create(self, data: Document) -> Document:
        try:
            document = self._schema.model_validate(data).model_dump()
        except ValidationError as exc:
            raise DocumentValidationError(self.name, _errors(exc)) from exc
        self._check_unique(document)
        now = self._now()
        document.update({"_id": str(ObjectId()), "createdAt": now, "updatedAt": now, "__v": 0})
        self.records[document["_id"]] = document
        return self._public(document)

    async def find(self, query: QueryDescriptor) -> list[Document]:
        documents = [d for d in self.records.values() if _matches(d, query.filters)]
        for key in reversed(query.sort):
            documents.sort(key=lambda d, f=key.field: d.get(f), reverse=key.descending)
        page = documents[query.skip : query.skip + query.limit]
        return [self._project(d, query) for d in page]

    async def find_by_id(
        self, document_id: str, populate: Optional[Populate] = None
    ) -> Optional[Document]:
        document = self.records.get(document_id)
        return self._public(document) if document else None

    async def find_by_id_and_update(
        self, document_id: str, data: Document
    ) -> Optional[Document]:
        changes = self._validate_partial(data)
        document = self.records.get(document_id)
        if document is None:
            return None
        self._check_unique(changes, exclude=document_id)
        document.update(changes)
        document["updatedAt"] = self._now()
        return self._public(document)

    async def find_by_id_and_delete(self, document_id: str) -> Optional[Document]:
        document = self.records.pop(document_id, None)
        return self._public(document) if document else None

    async def aggregate(self, pipeline: list[Document]) -> list[Document]:
        documents = list(self.records.values())
        for stage in pipeline:
            if "$match" in stage:
                documents = [
                    d for d in documents
                    if all(d.get(k) == v for k, v in stage["$match"].items())
                ]
            elif "$group" in stage:
                group = stage["$group"]
                key_field = group["_id"].lstrip("$")
                totals: dict[Any, Document] = {}
                for d in documents:
                    row = totals.setdefault(d.get(key_field), {"_id": d.get(key_field)})
                    for name, spec in group.items():
                        if name != "_id":
                            row[name] = row.get(name, 0) + spec["$sum"]
                documents = list(totals.values())
        return documents

    async def find_one_and_update(
        self, criteria: Document, update: Document, upsert: bool = True
    ) -> Optional[Document]:
        changes = self._validate_partial(update.get("$set", update))
        now = self._now()
        for document in self.records.values():
            if all(document.get(k) == v for k, v in criteria.items()):
                document.update(changes)
                document["updatedAt"] = now
                return self._public(document)
        if not upsert:
            return None
        defaults = {
            name: info.get_default(call_default_factory=True)
            for name, info in self._schema.model_fields.items()
            if not info.is_required()
        }
        document = {**defaults, **criteria, **changes}
        document.update({"_id": str(ObjectId()), "createdAt": now, "updatedAt": now, "__v": 0})
        self.records[document["_id"]] = document
        return self._public(document)

    # ── Helpers ──────────────────────────────────────────────────────

    def _now(self) -> datetime:
        self._ticks += 1
        return _EPOCH + timedelta(seconds=self._ticks)

    def _validate_partial(self, data: Document) -> Document:
        probe = self._schema.model_construct()
        fields = self._schema.model_fields
        errors: list[dict[str, str]] = []
        for key, value in data.items():
            if key in fields:
                try:
                    setattr(probe, key, value)
                except ValidationError as exc:
                    errors.extend(_errors(exc))
        if errors:
            raise DocumentValidationError(self.name, errors)
        return {key: getattr(probe, key) for key in data if key in fields}

    def _check_unique(self, document: Document, exclude: Optional[str] = None) -> None:
        for field in self._unique:
            if field not in document:
                continue
            for other_id, other in self.records.items():
                if other_id != exclude and other.get(field) == document[field]:
                    raise DuplicateKeyError(f"E11000 duplicate key error: {field}")

    def _public(self, document: Document) -> Document:
        return {k: v for k, v in document.items() if k not in self._hidden}

    def _project(self, document: Document, query: QueryDescriptor) -> Document:
        public = self._public(document)
        projection = query.projection
        if projection.include:
            return {k: v for k, v in public.items() if k == "_id" or k in projection.fields}
        return {k: v for k, v in public.items() if k not in projection.fields}


def _errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
        for e in exc.errors()
    ]


def _matches(document: Document, filters: dict[str, list[FilterTerm]]) -> bool:
    for field, terms in filters.items():
        value = document.get(field)
        for term in terms:
            if value is None:
                return False
            operand = _cast(term.value, value)
            if isinstance(term, Compare):
                if not _COMPARATORS[term.op](value, operand):
                    return False
            elif value != operand:
                return False
    return True


@pytest.fixture
def user_model() -> InMemoryDocumentModel:
    return InMemoryDocumentModel()


@pytest.fixture
def client(user_model):
    limiter.reset()
    app.dependency_overrides[get_user_model] = lambda: user_model
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Create a user through the API and return the response data."""

    def _make(name: str, email: str, password: str = "password123", **extra) -> Document:
        response = client.post(
            "/api/users",
            json={"name": name, "email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
