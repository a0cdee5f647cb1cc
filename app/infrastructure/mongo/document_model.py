"""
Adapter: MongoDB document model.

Implements the DocumentModel port on top of a Motor collection.
Model-level validation uses a pydantic schema: full validation on create,
per-field validation of the written fields on update and upsert.
Records leave this adapter with ObjectIds rendered as strings and hidden
fields removed.
"""

import copy
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel, TypeAdapter, ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.domain.documents.errors import DocumentValidationError
from app.domain.documents.ports import Document, DocumentModel, Populate
from app.domain.documents.query import (
    VERSION_KEY,
    Compare,
    ComparisonOperator,
    FilterTerm,
    Projection,
    QueryDescriptor,
    SortKey,
)

logger = logging.getLogger(__name__)

ID_FIELD = "_id"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
UPSERT_MAX_ATTEMPTS = 3

MONGO_OPERATORS = {
    ComparisonOperator.GTE: "$gte",
    ComparisonOperator.GT: "$gt",
    ComparisonOperator.LTE: "$lte",
    ComparisonOperator.LT: "$lt",
}

_DATETIME_ADAPTER = TypeAdapter(datetime)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _stringify_ids(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _stringify_ids(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_ids(v) for v in value]
    return value


def _field_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "__root__",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def render_sort(keys: Iterable[SortKey]) -> list[tuple[str, int]]:
    """Render sort keys as a pymongo sort list."""
    return [(key.field, DESCENDING if key.descending else ASCENDING) for key in keys]


class MongoDocumentModel(DocumentModel):
    """Motor-backed implementation of the DocumentModel port.

    The schema must enable ``validate_assignment`` so that partial updates
    can be validated field by field.

    Attributes:
        name: Model name used in log and validation messages.
    """

    def __init__(
        self,
        name: str,
        collection: AsyncIOMotorCollection,
        schema: type[BaseModel],
        hidden_fields: Iterable[str] = (),
    ) -> None:
        if not schema.model_config.get("validate_assignment"):
            raise ValueError(
                f"Schema {schema.__name__} must set validate_assignment=True"
            )
        self.name = name
        self._collection = collection
        self._schema = schema
        self._hidden_fields = frozenset(hidden_fields)
        self._adapters: dict[str, TypeAdapter] = {}

    # ── Port operations ──────────────────────────────────────────────

    async def create(self, data: Document) -> Document:
        document = self._validate(data)
        now = _utcnow()
        document.update({CREATED_AT: now, UPDATED_AT: now, VERSION_KEY: 0})
        result = await self._collection.insert_one(document)
        document[ID_FIELD] = result.inserted_id
        logger.info("Created %s %s", self.name, result.inserted_id)
        return self._to_record(document)

    async def find(self, query: QueryDescriptor) -> list[Document]:
        cursor = self._collection.find(
            self.render_filter(query.filters),
            projection=self.render_projection(query.projection),
        )
        cursor = cursor.sort(render_sort(query.sort)).skip(query.skip).limit(query.limit)
        documents = await cursor.to_list(length=query.limit)
        return [self._to_record(d) for d in documents]

    async def find_by_id(
        self, document_id: str, populate: Optional[Populate] = None
    ) -> Optional[Document]:
        object_id = ObjectId(document_id)
        if populate is None:
            document = await self._collection.find_one(
                {ID_FIELD: object_id}, projection=self._hidden_projection()
            )
            return self._to_record(document) if document else None

        pipeline = [
            {"$match": {ID_FIELD: object_id}},
            {"$limit": 1},
            {
                "$lookup": {
                    "from": populate.collection,
                    "localField": populate.path,
                    "foreignField": ID_FIELD,
                    "as": populate.path,
                }
            },
            {"$unwind": {"path": f"${populate.path}", "preserveNullAndEmptyArrays": True}},
        ]
        hidden = self._hidden_projection()
        if hidden:
            pipeline.append({"$project": hidden})
        documents = await self._collection.aggregate(pipeline).to_list(length=1)
        return self._to_record(documents[0]) if documents else None

    async def find_by_id_and_update(
        self, document_id: str, data: Document
    ) -> Optional[Document]:
        object_id = ObjectId(document_id)
        changes = self._validate_partial(data)
        changes[UPDATED_AT] = _utcnow()
        document = await self._collection.find_one_and_update(
            {ID_FIELD: object_id},
            {"$set": changes},
            projection=self._hidden_projection(),
            return_document=ReturnDocument.AFTER,
        )
        return self._to_record(document) if document else None

    async def find_by_id_and_delete(self, document_id: str) -> Optional[Document]:
        document = await self._collection.find_one_and_delete(
            {ID_FIELD: ObjectId(document_id)},
            projection=self._hidden_projection(),
        )
        if document:
            logger.info("Deleted %s %s", self.name, document_id)
        return self._to_record(document) if document else None

    async def aggregate(self, pipeline: list[Document]) -> list[Document]:
        documents = await self._collection.aggregate(pipeline).to_list(length=None)
        return [self._to_record(d) for d in documents]

    async def find_one_and_update(
        self, criteria: Document, update: Document, upsert: bool = True
    ) -> Optional[Document]:
        prepared = self._prepare_update(criteria, update, upsert)
        for attempt in range(1, UPSERT_MAX_ATTEMPTS + 1):
            try:
                document = await self._collection.find_one_and_update(
                    criteria,
                    prepared,
                    projection=self._hidden_projection(),
                    upsert=upsert,
                    return_document=ReturnDocument.AFTER,
                )
                break
            except DuplicateKeyError:
                # Two concurrent upserts can both miss and race on the unique index.
                if not upsert or attempt == UPSERT_MAX_ATTEMPTS:
                    raise
                logger.warning(
                    "Upsert on %s hit a duplicate key (attempt %d/%d), retrying",
                    self.name,
                    attempt,
                    UPSERT_MAX_ATTEMPTS,
                )
        return self._to_record(document) if document else None

    # ── Query rendering ──────────────────────────────────────────────

    def render_filter(self, filters: dict[str, list[FilterTerm]]) -> Document:
        """Render structured filter terms into a MongoDB filter document."""
        rendered: Document = {}
        for field, terms in filters.items():
            condition: Document = {}
            for term in terms:
                value = self._coerce(field, term.value)
                if isinstance(term, Compare):
                    condition[MONGO_OPERATORS[term.op]] = value
                else:
                    condition["$eq"] = value
            if list(condition) == ["$eq"]:
                rendered[field] = condition["$eq"]
            elif condition:
                rendered[field] = condition
        return rendered

    def render_projection(self, projection: Projection) -> Document:
        """Render a projection; hidden fields are never returned."""
        if projection.include:
            fields = [f for f in projection.fields if f not in self._hidden_fields]
            if not fields:
                return {ID_FIELD: 1}
            return dict.fromkeys(fields, 1)
        rendered = dict.fromkeys(projection.fields, 0)
        rendered.update(dict.fromkeys(sorted(self._hidden_fields), 0))
        return rendered

    # ── Helpers ──────────────────────────────────────────────────────

    def _coerce(self, field: str, value: Any) -> Any:
        """Cast a raw query value to the stored type of ``field``.

        Schema fields keep the raw value when it does not fit the field's
        type (e.g. a role outside the allowed set); such a filter simply
        matches nothing.
        """
        if field == ID_FIELD:
            return ObjectId(value)
        if field in (CREATED_AT, UPDATED_AT):
            return _DATETIME_ADAPTER.validate_python(value)
        if field not in self._schema.model_fields:
            return value
        adapter = self._adapters.get(field)
        if adapter is None:
            adapter = TypeAdapter(self._schema.model_fields[field].annotation)
            self._adapters[field] = adapter
        try:
            return adapter.validate_python(value)
        except ValidationError:
            logger.debug("Query value %r does not fit %s.%s", value, self.name, field)
            return value

    def _hidden_projection(self) -> Optional[Document]:
        if not self._hidden_fields:
            return None
        return dict.fromkeys(sorted(self._hidden_fields), 0)

    def _validate(self, data: Document) -> Document:
        try:
            return self._schema.model_validate(data).model_dump()
        except ValidationError as exc:
            raise DocumentValidationError(self.name, _field_errors(exc)) from exc

    def _validate_partial(self, data: Document) -> Document:
        """Validate only the given fields; unknown keys (including _id) are dropped."""
        fields = self._schema.model_fields
        probe = self._schema.model_construct()
        errors: list[dict[str, str]] = []
        for key, value in data.items():
            if key not in fields:
                continue
            try:
                setattr(probe, key, value)
            except ValidationError as exc:
                errors.extend(_field_errors(exc))
        if errors:
            raise DocumentValidationError(self.name, errors)
        return {key: getattr(probe, key) for key in data if key in fields}

    def _prepare_update(
        self, criteria: Document, update: Document, upsert: bool
    ) -> Document:
        if any(key.startswith("$") for key in update):
            prepared = copy.deepcopy(update)
        else:
            prepared = {"$set": copy.deepcopy(update)}

        now = _utcnow()
        prepared["$set"] = {**self._validate_partial(prepared.get("$set", {})), UPDATED_AT: now}
        if not upsert:
            return prepared

        written = set(criteria)
        for operator, fields in prepared.items():
            if operator != "$setOnInsert":
                written.update(fields)
        on_insert = {
            name: info.get_default(call_default_factory=True)
            for name, info in self._schema.model_fields.items()
            if not info.is_required() and name not in written
        }
        on_insert.update({CREATED_AT: now, VERSION_KEY: 0})
        on_insert.update(prepared.get("$setOnInsert", {}))
        prepared["$setOnInsert"] = on_insert
        return prepared

    def _to_record(self, document: Document) -> Document:
        return {
            key: _stringify_ids(value)
            for key, value in document.items()
            if key not in self._hidden_fields
        }
