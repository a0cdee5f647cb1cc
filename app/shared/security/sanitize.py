"""
Operator-injection sanitizer.

Removes keys that start with "$" or contain "." from request-supplied
mappings so that client input can never be read as a MongoDB operator or
a dotted path. Applied to request bodies and query strings before they
reach a document model.
"""

import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def is_unsafe_key(key: str) -> bool:
    return key.startswith("$") or "." in key


def sanitize(value: Any) -> Any:
    """Return a copy of ``value`` with unsafe keys removed at every depth."""
    if isinstance(value, Mapping):
        cleaned = {}
        for key, item in value.items():
            if is_unsafe_key(str(key)):
                logger.warning("Removed unsafe key from request input: %r", key)
                continue
            cleaned[key] = sanitize(item)
        return cleaned
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    return value
