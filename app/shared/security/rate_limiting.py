"""
Rate limiting configuration and setup.

Uses slowapi to enforce a per-client default limit on every route
(100 requests per 10 minutes unless configured otherwise).
The limit is checked by an application-wide dependency, so it runs for
every matched route after routing has resolved the endpoint.
Protects against denial-of-service and resource abuse.
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit_default])


def enforce_rate_limit(request: Request) -> None:
    """Count the request against the default limits of its route.

    Buckets are keyed by client address and request path.

    Raises:
        RateLimitExceeded: If the client is over the limit.
    """
    limiter._check_request_limit(
        request, request.scope.get("endpoint"), in_middleware=True
    )


def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Handle rate limit exceeded errors with the standard error envelope.

    Args:
        request: The incoming HTTP request.
        exc: The rate limit exceeded exception.

    Returns:
        A 429 JSON response.
    """
    logger.warning(
        "Rate limit exceeded for %s (%s)", get_remote_address(request), exc.detail
    )
    return JSONResponse(
        status_code=429,
        content={"status": "fail", "message": RATE_LIMIT_MESSAGE},
    )
