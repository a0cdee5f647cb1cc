"""
Dependency injection for the users routes.

The user model is built once at startup (see app.main lifespan) and kept
on the application state. Tests replace get_user_model through
``app.dependency_overrides``.
"""

from fastapi import Request

from app.domain.documents.ports import DocumentModel


def get_user_model(request: Request) -> DocumentModel:
    """Return the DocumentModel backing /api/users."""
    model = getattr(request.app.state, "user_model", None)
    if model is None:
        raise RuntimeError("User model is not initialized; is MongoDB connected?")
    return model
