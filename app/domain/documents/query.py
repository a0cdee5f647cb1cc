"""
Query translation for document listings.

Turns a query-string mapping into a QueryDescriptor: a structured filter
(one list of Equals/Compare terms per field), an ordered sort, a projection
and pagination. Rendering the descriptor into a concrete store syntax is the
store adapter's job.

Pure functions only. No IO, no framework imports.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from app.domain.documents.errors import QueryParseError

RESERVED_KEYS = frozenset({"page", "sort", "limit", "fields"})

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT_FIELD = "createdAt"
VERSION_KEY = "__v"

_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


class ComparisonOperator(Enum):
    """Range comparison recognized in list filters."""

    GTE = "gte"
    GT = "gt"
    LTE = "lte"
    LT = "lt"


@dataclass(frozen=True)
class Equals:
    """Field must equal the value."""

    value: Any


@dataclass(frozen=True)
class Compare:
    """Field must compare to the value with the given operator."""

    op: ComparisonOperator
    value: Any


FilterTerm = Union[Equals, Compare]


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """Set of fields to include (include=True) or exclude (include=False)."""

    fields: tuple[str, ...]
    include: bool


DEFAULT_SORT = (SortKey(DEFAULT_SORT_FIELD, descending=True),)
DEFAULT_PROJECTION = Projection((VERSION_KEY,), include=False)


@dataclass(frozen=True)
class QueryDescriptor:
    """Structured form of a list query.

    Attributes:
        filters: Filter terms keyed by field name, in query order.
        sort: Ordered sort keys.
        projection: Included or excluded fields.
        page: 1-based page number.
        limit: Page size.
    """

    filters: dict[str, list[FilterTerm]] = field(default_factory=dict)
    sort: tuple[SortKey, ...] = DEFAULT_SORT
    projection: Projection = DEFAULT_PROJECTION
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def translate_query(params: Mapping[str, Any]) -> QueryDescriptor:
    """Translate query-string parameters into a QueryDescriptor.

    Args:
        params: Query parameters. Range filters may be given either as
            bracketed keys (``{"age[gte]": "21"}``) or as nested mappings
            (``{"age": {"gte": "21"}}``).

    Returns:
        The descriptor. Translating equal inputs yields equal descriptors.

    Raises:
        QueryParseError: If a key is malformed or uses an unsupported operator.
    """
    return QueryDescriptor(
        filters=_parse_filters(params),
        sort=_parse_sort(params.get("sort")),
        projection=_parse_projection(params.get("fields")),
        page=_parse_positive_int(params.get("page"), DEFAULT_PAGE),
        limit=_parse_positive_int(params.get("limit"), DEFAULT_LIMIT),
    )


def _parse_filters(params: Mapping[str, Any]) -> dict[str, list[FilterTerm]]:
    filters: dict[str, list[FilterTerm]] = {}
    for key, value in params.items():
        if key in RESERVED_KEYS:
            continue

        match = _BRACKET_KEY.match(key)
        if match:
            name = match.group("field")
            filters.setdefault(name, []).append(
                _comparison(name, match.group("op"), value)
            )
        elif "[" in key or "]" in key:
            raise QueryParseError(f"Malformed query parameter '{key}'")
        elif isinstance(value, Mapping):
            terms = filters.setdefault(key, [])
            for op, operand in value.items():
                terms.append(_comparison(key, op, operand))
        else:
            filters.setdefault(key, []).append(Equals(value))
    return filters


def _comparison(name: str, op: str, value: Any) -> Compare:
    try:
        operator = ComparisonOperator(op)
    except ValueError:
        raise QueryParseError(
            f"Unsupported query operator '{op}' for field '{name}'"
        ) from None
    return Compare(operator, value)


def _parse_sort(raw: Optional[str]) -> tuple[SortKey, ...]:
    if not raw:
        return DEFAULT_SORT
    keys = []
    for token in _split(raw):
        if token.startswith("-"):
            keys.append(SortKey(token[1:], descending=True))
        else:
            keys.append(SortKey(token.lstrip("+")))
    return tuple(keys) or DEFAULT_SORT


def _parse_projection(raw: Optional[str]) -> Projection:
    if not raw:
        return DEFAULT_PROJECTION
    tokens = _split(raw)
    if not tokens:
        return DEFAULT_PROJECTION
    excluded = [t for t in tokens if t.startswith("-")]
    if not excluded:
        return Projection(tuple(tokens), include=True)
    if len(excluded) != len(tokens):
        raise QueryParseError(
            "Cannot mix included and excluded fields in 'fields'"
        )
    return Projection(tuple(t[1:] for t in excluded), include=False)


def _parse_positive_int(raw: Any, default: int) -> int:
    """Parse the leading integer of ``raw``; non-positive or missing falls back."""
    if raw is None:
        return default
    match = _LEADING_INT.match(str(raw))
    if not match:
        return default
    value = int(match.group())
    return value if value > 0 else default


def _split(raw: str) -> list[str]:
    return [token.strip() for token in str(raw).split(",") if token.strip()]
