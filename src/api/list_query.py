# This file normalizes list query-string input and turns it into store filter predicates.
# It exists so search, sort, and translation-completeness filters behave the same on every entity.
# Parsers here never raise: unknown or malformed values fall back to safe defaults.
# Free-text search is sanitized before it is embedded in a filter expression.

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from src.api.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PaginationParams,
    read_pagination_params,
)
from src.api.store_protocols import FilterPredicateQuery

SortDir = Literal["asc", "desc"]
TranslationFilter = Literal["all", "missing_en", "missing_fr", "complete"]

DEFAULT_MAX_QUERY_LENGTH = 120

_WHITESPACE_RE = re.compile(r"\s+")
_PATTERN_DELIMITERS_RE = re.compile(r"[,%()]")
_QUOTES_RE = re.compile(r"[\"']")

Q = TypeVar("Q", bound=FilterPredicateQuery)


@dataclass(frozen=True)
class SortSpec:
    field: str
    order: SortDir

    @property
    def ascending(self) -> bool:
        return self.order == "asc"


@dataclass(frozen=True)
class NormalizedQuery:
    search: str
    sort: SortSpec
    translation_filter: TranslationFilter
    pagination: PaginationParams


def _normalize_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def parse_search_query(raw: Any, max_length: int = DEFAULT_MAX_QUERY_LENGTH) -> str:
    if not isinstance(raw, str):
        return ""
    normalized = _normalize_whitespace(raw)
    if not normalized:
        return ""
    return normalized[: max(1, max_length)]


def parse_sort_dir(raw: Any, fallback: SortDir = "asc") -> SortDir:
    if raw == "asc" or raw == "desc":
        return raw
    return fallback


def parse_sort_by(raw: Any, allowed: Sequence[str], fallback: str) -> str:
    """Accept `raw` only if it is one of the entity's sortable columns."""

    if not raw or not isinstance(raw, str):
        return fallback
    return raw if raw in allowed else fallback


def parse_translation_filter(raw: Any) -> TranslationFilter:
    if raw == "missing_en":
        return "missing_en"
    if raw == "missing_fr":
        return "missing_fr"
    if raw == "complete":
        return "complete"
    return "all"


def to_or_ilike_pattern(raw: str) -> str:
    """Build a `%...%` substring pattern with filter-expression delimiters removed."""

    sanitized = _PATTERN_DELIMITERS_RE.sub(" ", _normalize_whitespace(raw))
    sanitized = _QUOTES_RE.sub("", sanitized)
    return f"%{_normalize_whitespace(sanitized)}%"


def _first_present(params: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = params.get(name)
        if value is not None:
            return value
    return None


def read_list_query(
    params: Mapping[str, Any],
    *,
    sort_fields: Sequence[str],
    default_sort_by: str,
    default_sort_dir: SortDir = "asc",
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
    max_search_length: int = DEFAULT_MAX_QUERY_LENGTH,
) -> NormalizedQuery:
    """Normalize every list query-string parameter for one entity."""

    return NormalizedQuery(
        search=parse_search_query(_first_present(params, "q", "search"), max_search_length),
        sort=SortSpec(
            field=parse_sort_by(params.get("sortBy"), sort_fields, default_sort_by),
            order=parse_sort_dir(params.get("sortDir"), default_sort_dir),
        ),
        translation_filter=parse_translation_filter(
            _first_present(params, "translation", "translationFilter")
        ),
        pagination=read_pagination_params(
            params,
            default_page_size=default_page_size,
            max_page_size=max_page_size,
        ),
    )


def apply_search_filter(query: Q, search: str, columns: Sequence[str]) -> Q:
    """OR a case-insensitive substring match across `columns`."""

    if not search or not columns:
        return query
    pattern = to_or_ilike_pattern(search)
    return query.or_(",".join(f"{column}.ilike.{pattern}" for column in columns))


def apply_translation_filter(
    query: Q,
    translation_filter: TranslationFilter,
    english_column: str,
    french_column: str,
) -> Q:
    """Append translation-completeness predicates; null and empty string both count as missing."""

    if translation_filter == "missing_en":
        return query.or_(f'{english_column}.is.null,{english_column}.eq.""')

    if translation_filter == "missing_fr":
        return query.or_(f'{french_column}.is.null,{french_column}.eq.""')

    if translation_filter == "complete":
        return (
            query.not_(english_column, "is", None)
            .neq(english_column, "")
            .not_(french_column, "is", None)
            .neq(french_column, "")
        )

    return query
