"""
CRUD handler factory.

Turns a DocumentModel dependency into ready-to-mount FastAPI endpoints:
create_one, get_one, update_one, delete_one, get_all, get_all_agg and
singular_create_and_update.

Every endpoint answers with the same envelope,
``{"status": "success", "data": ...}`` (plus ``results`` for lists), and
follows the same error policy: persistence failures propagate untouched to
the global error handlers; only missing records are turned into
DocumentNotFoundError here.

Body schemas are bound at factory time and used as endpoint annotations,
so this module must not use postponed annotation evaluation.
"""

import copy
import logging
from collections.abc import Callable
from typing import Any, Optional

from fastapi import Body, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from app.domain.documents.errors import DocumentNotFoundError
from app.domain.documents.ports import Document, DocumentModel, Populate
from app.domain.documents.query import translate_query
from app.interfaces.documents.validation import DocumentId, parse_body
from app.shared.security.sanitize import sanitize

logger = logging.getLogger(__name__)

ModelDependency = Callable[..., DocumentModel]


def success(status_code: int, data: Any, results: Optional[int] = None) -> JSONResponse:
    """Build the success envelope."""
    body: dict[str, Any] = {"status": "success"}
    if results is not None:
        body["results"] = results
    body["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def _body(payload: BaseModel) -> Document:
    return sanitize(payload.model_dump(exclude_unset=True))


def create_one(get_model: ModelDependency, body_schema: type[BaseModel]):
    """Endpoint inserting the request body as a new record (201)."""

    async def create(
        payload: Optional[body_schema] = Body(default=None),
        model: DocumentModel = Depends(get_model),
    ) -> JSONResponse:
        document = await model.create(_body(parse_body(body_schema, payload)))
        return success(status.HTTP_201_CREATED, document)

    return create


def get_one(get_model: ModelDependency, populate: Optional[Populate] = None):
    """Endpoint returning one record by identifier (200, or 404)."""

    async def read(
        id: DocumentId, model: DocumentModel = Depends(get_model)
    ) -> JSONResponse:
        document = await model.find_by_id(id, populate=populate)
        if document is None:
            raise DocumentNotFoundError()
        return success(status.HTTP_200_OK, document)

    return read


def update_one(get_model: ModelDependency, body_schema: type[BaseModel]):
    """Endpoint applying a validated partial update (200, or 404)."""

    async def update(
        id: DocumentId,
        payload: Optional[body_schema] = Body(default=None),
        model: DocumentModel = Depends(get_model),
    ) -> JSONResponse:
        changes = _body(parse_body(body_schema, payload))
        document = await model.find_by_id_and_update(id, changes)
        if document is None:
            raise DocumentNotFoundError()
        return success(status.HTTP_200_OK, document)

    return update


def delete_one(get_model: ModelDependency):
    """Endpoint removing one record (204 with no body, or 404)."""

    async def delete(
        id: DocumentId, model: DocumentModel = Depends(get_model)
    ) -> Response:
        document = await model.find_by_id_and_delete(id)
        if document is None:
            raise DocumentNotFoundError()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return delete


def get_all(get_model: ModelDependency):
    """Endpoint listing records filtered, sorted, projected and paginated
    from the query string. An empty page is still a success."""

    async def list_documents(
        request: Request, model: DocumentModel = Depends(get_model)
    ) -> JSONResponse:
        query = translate_query(sanitize(dict(request.query_params)))
        documents = await model.find(query)
        logger.debug(
            "Listed %d %s record(s) (page=%d, limit=%d)",
            len(documents),
            model.name,
            query.page,
            query.limit,
        )
        return success(status.HTTP_200_OK, documents, results=len(documents))

    return list_documents


def get_all_agg(get_model: ModelDependency, pipeline: Optional[list[Document]] = None):
    """Endpoint running a fixed aggregation pipeline."""
    stages = copy.deepcopy(pipeline or [])

    async def aggregate(model: DocumentModel = Depends(get_model)) -> JSONResponse:
        documents = await model.aggregate(copy.deepcopy(stages))
        return success(status.HTTP_200_OK, documents, results=len(documents))

    return aggregate


def singular_create_and_update(
    get_model: ModelDependency, criteria: Document, update: Document
):
    """Endpoint applying a fixed, idempotent upsert.

    Updates the record matching ``criteria`` or inserts it with defaults,
    and always returns the record as it is after the operation.
    """
    fixed_criteria = copy.deepcopy(criteria)
    fixed_update = copy.deepcopy(update)

    async def upsert(model: DocumentModel = Depends(get_model)) -> JSONResponse:
        document = await model.find_one_and_update(
            copy.deepcopy(fixed_criteria), copy.deepcopy(fixed_update), upsert=True
        )
        return success(status.HTTP_200_OK, document)

    return upsert
