"""
Health check and welcome routes.

Provides a simple health endpoint for liveness/readiness probes and the
plain-text API root. No business logic.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from app.core.config import settings

WELCOME_MESSAGE = "Welcome to the API"

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status and version.",
)
def health_check() -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(status="ok", version=settings.version)


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
def welcome() -> str:
    return WELCOME_MESSAGE
