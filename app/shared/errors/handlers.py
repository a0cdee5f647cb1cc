"""
Centralized error handlers for FastAPI.

Every failure ends here and leaves as one JSON envelope:
- request validation errors: 400 ``{status: "fail", errors: [...]}``
- everything else: ``{status, message}`` with the error's status code.

Messages of operational errors (AppError and anything flagged
``is_operational``) are returned verbatim. Internal faults are logged with
their traceback and reported as "Something went wrong". They are converted
inside the middleware stack by UnexpectedErrorMiddleware, so the response
still carries the security and CORS headers.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.domain.documents.errors import AppError, RouteNotFoundError

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_500 = 500

GENERIC_MESSAGE = "Something went wrong"

_LOCATIONS = {"body": "body", "path": "params", "query": "query", "header": "headers"}
SENSITIVE_FIELDS = frozenset({"password"})


def error_body(exc: Exception) -> tuple[int, dict[str, str]]:
    """Build the status code and envelope for any error object.

    Uses ``status_code`` (default 500) and ``status`` (default "error")
    when the error carries them; hides the message unless the error is
    operational.
    """
    status_code = getattr(exc, "status_code", None) or HTTP_500
    status = getattr(exc, "status", None) or "error"
    if getattr(exc, "is_operational", False):
        message = getattr(exc, "message", None) or str(exc)
    else:
        message = GENERIC_MESSAGE
    return status_code, {"status": status, "message": message}


def validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{type, value, msg, path, location}`` items."""
    items = []
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        location = _LOCATIONS.get(str(loc[0]), str(loc[0])) if loc else "body"
        item = {
            "type": "field",
            "msg": error["msg"],
            "path": ".".join(str(part) for part in loc[1:]),
            "location": location,
        }
        field_name = loc[-1] if loc else None
        if error.get("input") is not None and field_name not in SENSITIVE_FIELDS:
            item["value"] = error["input"]
        items.append(item)
    return items


def _error_response(status_code: int, body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report every failed request check at once."""
        errors = validation_errors(exc)
        logger.info("Request validation failed with %d error(s)", len(errors))
        return _error_response(HTTP_400, {"status": "fail", "errors": errors})

    @app.exception_handler(AppError)
    async def handle_app_error(_request: Request, exc: AppError) -> JSONResponse:
        """Handle operational application errors."""
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        return _error_response(*error_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Translate unmatched routes and framework HTTP errors."""
        if exc.status_code == HTTP_404:
            url = request.url.path
            if request.url.query:
                url = f"{url}?{request.url.query}"
            return await handle_app_error(request, RouteNotFoundError(url))

        status = "fail" if exc.status_code < HTTP_500 else "error"
        response = _error_response(
            exc.status_code, {"status": status, "message": str(exc.detail)}
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for errors raised outside UnexpectedErrorMiddleware."""
        return unexpected_error_response(exc)


def unexpected_error_response(exc: Exception) -> JSONResponse:
    """Envelope for persistence and programming errors."""
    status_code, body = error_body(exc)
    if status_code >= HTTP_500:
        logger.error("Unexpected error: %s", type(exc).__name__, exc_info=exc)
    else:
        logger.warning("Unhandled %s (%d)", type(exc).__name__, status_code)
    return _error_response(status_code, body)


class UnexpectedErrorMiddleware(BaseHTTPMiddleware):
    """Convert unhandled exceptions into the error envelope.

    Must be the innermost middleware: the 500 response then still passes
    through the security headers and CORS middleware.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return unexpected_error_response(exc)
