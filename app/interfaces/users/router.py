"""
FastAPI router for the users resource.

Route table only: each route binds a validator chain (request schema or
annotated path type) to a factory-produced handler.
Static paths are registered before /{id} so they stay reachable.
"""

from fastapi import APIRouter, Depends, status

from app.interfaces.documents import factory
from app.interfaces.documents.schemas import (
    ErrorResponse,
    ListResponse,
    SuccessResponse,
    ValidationErrorResponse,
)
from app.interfaces.documents.validation import require_body
from app.interfaces.users.dependencies import get_user_model
from app.interfaces.users.schemas import (
    CreateUserRequest,
    UpdateRoleRequest,
    UpdateUserRequest,
)

USER_DETAILS_PIPELINE = [
    {"$match": {"active": True}},
    {"$group": {"_id": "$role", "total": {"$sum": 1}}},
]

PROMOTION_CRITERIA = {"email": "usertobemadeadmin@example.com"}
PROMOTION_UPDATE = {"$set": {"role": "admin", "name": "default name"}}

_VALIDATION = {400: {"model": ValidationErrorResponse}}
_NOT_FOUND = {404: {"model": ErrorResponse}}

create_user = factory.create_one(get_user_model, CreateUserRequest)
get_user = factory.get_one(get_user_model)
update_user = factory.update_one(get_user_model, UpdateUserRequest)
delete_user = factory.delete_one(get_user_model)
get_all_users = factory.get_all(get_user_model)
get_user_details = factory.get_all_agg(get_user_model, USER_DETAILS_PIPELINE)
update_user_settings = factory.singular_create_and_update(
    get_user_model, PROMOTION_CRITERIA, PROMOTION_UPDATE
)

router = APIRouter(prefix="/api/users", tags=["users"])

router.add_api_route(
    "",
    create_user,
    methods=["POST"],
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse,
    responses=_VALIDATION,
    summary="Create a user",
)
router.add_api_route(
    "",
    get_all_users,
    methods=["GET"],
    response_model=ListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List users",
    description=(
        "Filter with `?field=value` or `?field[gte|gt|lte|lt]=value`, sort with "
        "`?sort=field,-other`, limit fields with `?fields=a,b`, paginate with "
        "`?page=&limit=`."
    ),
)
router.add_api_route(
    "/userDetails",
    get_user_details,
    methods=["GET"],
    response_model=ListResponse,
    summary="Count active users per role",
)
router.add_api_route(
    "/update-role",
    update_user_settings,
    methods=["PATCH"],
    dependencies=[Depends(require_body(UpdateRoleRequest))],
    response_model=SuccessResponse,
    responses=_VALIDATION,
    summary="Promote the designated account to admin (upsert)",
)
router.add_api_route(
    "/{id}",
    get_user,
    methods=["GET"],
    response_model=SuccessResponse,
    responses={**_VALIDATION, **_NOT_FOUND},
    summary="Get a user",
)
router.add_api_route(
    "/{id}",
    update_user,
    methods=["PATCH"],
    response_model=SuccessResponse,
    responses={**_VALIDATION, **_NOT_FOUND},
    summary="Update a user",
)
router.add_api_route(
    "/{id}",
    delete_user,
    methods=["DELETE"],
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_VALIDATION, **_NOT_FOUND},
    summary="Delete a user",
)
