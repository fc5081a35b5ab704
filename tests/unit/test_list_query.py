"""
Unit tests for list query normalization and filter predicates.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

from typing import Any

from src.api.list_query import (
    apply_search_filter,
    apply_translation_filter,
    parse_search_query,
    parse_sort_by,
    parse_sort_dir,
    parse_translation_filter,
    read_list_query,
    to_or_ilike_pattern,
)


class RecordingQuery:
    """Records predicate calls instead of talking to a store."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def or_(self, filters: str) -> RecordingQuery:
        self.calls.append(("or", filters))
        return self

    def not_(self, column: str, operator: str, value: Any) -> RecordingQuery:
        self.calls.append(("not", column, operator, value))
        return self

    def neq(self, column: str, value: Any) -> RecordingQuery:
        self.calls.append(("neq", column, value))
        return self


def test_search_query_collapses_whitespace() -> None:
    assert parse_search_query("  a   b  ") == "a b"
    assert parse_search_query("line\n\tbreak") == "line break"


def test_search_query_non_string_is_empty() -> None:
    assert parse_search_query(None) == ""
    assert parse_search_query(42) == ""
    assert parse_search_query("    ") == ""


def test_search_query_is_truncated() -> None:
    assert len(parse_search_query("x" * 200, max_length=120)) == 120
    assert parse_search_query("abc", max_length=0) == "a"


def test_sort_dir_accepts_only_exact_values() -> None:
    assert parse_sort_dir("desc") == "desc"
    assert parse_sort_dir("DESC") == "asc"
    assert parse_sort_dir(None, "desc") == "desc"


def test_sort_by_uses_allow_list() -> None:
    allowed = ("order", "name_en")

    assert parse_sort_by("name_en", allowed, "order") == "name_en"
    assert parse_sort_by("password", allowed, "order") == "order"
    assert parse_sort_by("", allowed, "order") == "order"


def test_translation_filter_defaults_to_all() -> None:
    assert parse_translation_filter("missing_fr") == "missing_fr"
    assert parse_translation_filter("complete") == "complete"
    assert parse_translation_filter("MISSING_EN") == "all"
    assert parse_translation_filter(None) == "all"


def test_ilike_pattern_strips_filter_delimiters() -> None:
    assert to_or_ilike_pattern('50% off, "great"') == "%50 off great%"
    assert to_or_ilike_pattern("(it's)") == "%its%"


def test_read_list_query_reads_aliases() -> None:
    normalized = read_list_query(
        {"search": " react  native ", "translationFilter": "missing_en", "sortDir": "desc"},
        sort_fields=("order", "title_en"),
        default_sort_by="order",
    )

    assert normalized.search == "react native"
    assert normalized.translation_filter == "missing_en"
    assert normalized.sort.field == "order"
    assert normalized.sort.order == "desc"
    assert normalized.pagination.enabled is False


def test_read_list_query_prefers_primary_names() -> None:
    normalized = read_list_query(
        {"q": "first", "search": "second", "translation": "complete", "translationFilter": "missing_fr"},
        sort_fields=("order",),
        default_sort_by="order",
    )

    assert normalized.search == "first"
    assert normalized.translation_filter == "complete"


def test_search_filter_ors_every_column() -> None:
    query = apply_search_filter(RecordingQuery(), "50% off", ("name_en", "name_fr"))

    assert query.calls == [("or", "name_en.ilike.%50 off%,name_fr.ilike.%50 off%")]


def test_empty_search_leaves_query_unchanged() -> None:
    assert apply_search_filter(RecordingQuery(), "", ("name_en",)).calls == []


def test_missing_translation_matches_null_or_empty() -> None:
    query = apply_translation_filter(RecordingQuery(), "missing_en", "name_en", "name_fr")

    assert query.calls == [("or", 'name_en.is.null,name_en.eq.""')]


def test_complete_translation_requires_both_columns_non_empty() -> None:
    query = apply_translation_filter(RecordingQuery(), "complete", "name_en", "name_fr")

    assert query.calls == [
        ("not", "name_en", "is", None),
        ("neq", "name_en", ""),
        ("not", "name_fr", "is", None),
        ("neq", "name_fr", ""),
    ]


def test_all_translation_filter_is_a_no_op() -> None:
    query = RecordingQuery()

    assert apply_translation_filter(query, "all", "name_en", "name_fr") is query
    assert query.calls == []
