"""
Domain errors for the documents bounded context.

Every error raised deliberately by the service is an AppError: an
operational failure (bad input, missing resource) whose message is safe to
show to clients. Anything else reaching the error handlers is treated as an
internal fault.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from typing import Any

CLIENT_ERROR_MIN = 400
CLIENT_ERROR_MAX = 499


class AppError(Exception):
    """Base error for all operational application errors.

    Attributes:
        message: Human-readable message, safe to return to clients.
        status_code: HTTP status code in the 400-599 range.
        status: "fail" for client errors (4xx), "error" otherwise.
        is_operational: Always True; only deliberate call sites raise this.
    """

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        self.status = (
            "fail" if CLIENT_ERROR_MIN <= status_code <= CLIENT_ERROR_MAX else "error"
        )
        self.is_operational = True
        super().__init__(self.message)


class DocumentNotFoundError(AppError):
    """Raised when no document matches the requested identifier."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message, 404)


class RouteNotFoundError(AppError):
    """Raised when a request does not match any registered route."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot find {path} on this server", 404)
        self.path = path


class QueryParseError(AppError):
    """Raised when a query string cannot be translated into a document query."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class DocumentValidationError(AppError):
    """Raised by a store when model-level validation rejects a write.

    Attributes:
        model_name: Name of the model whose validation failed.
        errors: One entry per rejected field, ``{"field", "message"}``.
    """

    def __init__(self, model_name: str, errors: list[dict[str, Any]]) -> None:
        detail = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"{model_name} validation failed: {detail}", 400)
        self.model_name = model_name
        self.errors = errors
