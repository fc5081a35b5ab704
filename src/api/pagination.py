# This file handles page and page-size parsing for list endpoints.
# It exists so every router uses the same deterministic rules for page size and row ranges.
# The helpers never reject query-string input; bad values fall back to safe defaults instead.
# Centralizing this logic keeps endpoint code small and avoids inconsistent query semantics.

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from src.api.store_protocols import RangeQuery

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Larger values fall back to the default instead of producing unbounded offsets.
_MAX_PARSED_INT = 2**31 - 1
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)", re.ASCII)

T = TypeVar("T")
R = TypeVar("R", bound=RangeQuery)


@dataclass(frozen=True)
class PaginationParams:
    enabled: bool
    page: int
    page_size: int
    from_: int
    to: int


def _parse_positive_int(raw: Any, fallback: int) -> int:
    if not isinstance(raw, str):
        return fallback
    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return fallback
    parsed = int(match.group(1))
    if parsed < 1 or parsed > _MAX_PARSED_INT:
        return fallback
    return parsed


def parse_page_query(raw: Any) -> int:
    return _parse_positive_int(raw, DEFAULT_PAGE)


def parse_page_size_query(
    raw: Any,
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> int:
    parsed = _parse_positive_int(raw, default_page_size)
    return min(max_page_size, max(1, parsed))


def read_pagination_params(
    query: Mapping[str, Any],
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PaginationParams:
    """Read `page`/`pageSize` and derive the zero-based inclusive row range.

    Pagination is only enabled when the caller supplied at least one of the two
    parameters; otherwise list endpoints return every row.
    """

    raw_page = query.get("page")
    raw_page_size = query.get("pageSize")
    page = parse_page_query(raw_page)
    page_size = parse_page_size_query(
        raw_page_size,
        default_page_size=default_page_size,
        max_page_size=max_page_size,
    )
    from_ = (page - 1) * page_size
    return PaginationParams(
        enabled=raw_page is not None or raw_page_size is not None,
        page=page,
        page_size=page_size,
        from_=from_,
        to=from_ + page_size - 1,
    )


def apply_pagination_range(query: R, pagination: PaginationParams) -> R:
    if not pagination.enabled:
        return query
    return query.range(pagination.from_, pagination.to)


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    """Compute deterministic total page count; an empty result still has one page."""

    if total_count <= 0:
        return 1
    return math.ceil(total_count / max(1, page_size))


def create_paginated_response(
    items: Sequence[T],
    page: int,
    page_size: int,
    total: Any,
) -> dict[str, Any]:
    """Shape the paginated envelope; `items` is expected to be the already-ranged page."""

    if isinstance(total, bool) or not isinstance(total, (int, float)) or not math.isfinite(total):
        safe_total = 0
    else:
        safe_total = max(0, int(total))
    return {
        "items": list(items),
        "page": page,
        "pageSize": page_size,
        "total": safe_total,
        "totalPages": compute_total_pages(total_count=safe_total, page_size=page_size),
    }
