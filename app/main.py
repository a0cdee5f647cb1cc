"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (health, users)
- Error handlers (centralized error-to-HTTP mapping)
- Security middleware (CORS, headers, rate limiting)
- Logging configuration
- MongoDB connection lifecycle

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.infrastructure.mongo.client import MongoClientManager
from app.infrastructure.users.user_model import build_user_model, ensure_user_indexes
from app.interfaces.health import router as health_router
from app.interfaces.users.router import router as users_router
from app.shared.errors.handlers import (
    UnexpectedErrorMiddleware,
    register_error_handlers,
)
from app.shared.logging import configure_logging
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.security.rate_limiting import (
    enforce_rate_limit,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: connect to MongoDB and build the document models."""
    if settings.is_test:
        logger.info("Test environment: MongoDB connection skipped")
        yield
        return

    mongo = MongoClientManager(settings.mongodb_url, settings.mongodb_db)
    try:
        database = await mongo.connect()
        await ensure_user_indexes(database)
        app.state.user_model = build_user_model(database)
        yield
    finally:
        await mongo.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
        dependencies=[Depends(enforce_rate_limit)],
    )

    # --- Rate Limiting ---
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware (last added runs first) ---
    app.add_middleware(UnexpectedErrorMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(users_router)
    app.include_router(health_router)

    return app


app = create_app()
