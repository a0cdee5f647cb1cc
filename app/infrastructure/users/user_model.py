"""
Adapter: User document model.

Declares the stored shape of a user and builds the MongoDocumentModel
backing the /api/users routes.
"""

import logging
from typing import Literal

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ConfigDict, Field

from app.infrastructure.mongo.document_model import MongoDocumentModel

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
USER_HIDDEN_FIELDS = ("password",)


class UserDocument(BaseModel):
    """Model-level validation for stored users.

    Attributes:
        name: Display name, trimmed, non-empty.
        email: Unique e-mail address, trimmed.
        role: Either "admin" or "user".
        active: Whether the account is active.
        password: Stored on write, never returned.
    """

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    role: Literal["admin", "user"] = "user"
    active: bool = True
    password: str


def build_user_model(database: AsyncIOMotorDatabase) -> MongoDocumentModel:
    """Create the users DocumentModel on the given database."""
    return MongoDocumentModel(
        name="User",
        collection=database[USERS_COLLECTION],
        schema=UserDocument,
        hidden_fields=USER_HIDDEN_FIELDS,
    )


async def ensure_user_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create the unique e-mail index if it does not exist."""
    await database[USERS_COLLECTION].create_index("email", unique=True)
    logger.info("Ensured unique index on %s.email", USERS_COLLECTION)
