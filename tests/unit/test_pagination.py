"""
Unit tests for page parsing and the paginated envelope.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

from typing import Any

import pytest

from src.api.pagination import (
    apply_pagination_range,
    compute_total_pages,
    create_paginated_response,
    parse_page_query,
    parse_page_size_query,
    read_pagination_params,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0", 10), ("-4", 10), ("250", 100), ("100", 100), ("1", 1), ("37", 37)],
)
def test_page_size_is_clamped_into_range(raw: str, expected: int) -> None:
    assert parse_page_size_query(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "NaN", "Infinity", "  "])
def test_non_numeric_page_values_use_defaults(raw: str | None) -> None:
    assert parse_page_query(raw) == 1
    assert parse_page_size_query(raw) == 10


def test_leading_integer_is_parsed() -> None:
    assert parse_page_query("3abc") == 3
    assert parse_page_size_query("20.9") == 20


def test_oversized_page_falls_back_to_default() -> None:
    assert parse_page_query(str(2**40)) == 1


@pytest.mark.parametrize("raw", ["٣", "١٢", "５"])
def test_non_ascii_digits_use_defaults(raw: str) -> None:
    assert parse_page_query(raw) == 1
    assert parse_page_size_query(raw) == 10


def test_non_ascii_digits_after_ascii_digits_are_ignored() -> None:
    assert parse_page_query("2٣") == 2


def test_read_pagination_params_computes_inclusive_range() -> None:
    params = read_pagination_params({"page": "3", "pageSize": "20"})

    assert params.enabled is True
    assert params.page == 3
    assert params.page_size == 20
    assert params.from_ == 40
    assert params.to == 59


def test_read_pagination_params_disabled_without_page_keys() -> None:
    params = read_pagination_params({"q": "python"})

    assert params.enabled is False
    assert params.page == 1
    assert params.page_size == 10
    assert (params.from_, params.to) == (0, 9)


def test_page_size_alone_enables_pagination() -> None:
    assert read_pagination_params({"pageSize": "5"}).enabled is True


def test_configured_defaults_are_respected() -> None:
    params = read_pagination_params({"page": "2"}, default_page_size=4, max_page_size=6)

    assert params.page_size == 4
    assert params.from_ == 4
    assert read_pagination_params({"pageSize": "50"}, max_page_size=6).page_size == 6


@pytest.mark.parametrize(("page", "page_size"), [(1, 10), (7, 1), (3, 100)])
def test_empty_total_still_reports_one_page(page: int, page_size: int) -> None:
    payload = create_paginated_response([], page, page_size, 0)

    assert payload["totalPages"] == 1
    assert payload["total"] == 0
    assert payload["page"] == page
    assert payload["pageSize"] == page_size


def test_total_pages_rounds_up() -> None:
    assert compute_total_pages(total_count=21, page_size=10) == 3
    assert compute_total_pages(total_count=20, page_size=10) == 2


@pytest.mark.parametrize("total", [-5, float("nan"), float("inf"), "12", None, True])
def test_invalid_totals_are_coerced_to_zero(total: object) -> None:
    payload = create_paginated_response(["a"], 1, 10, total)

    assert payload["total"] == 0
    assert payload["totalPages"] == 1


def test_items_are_not_sliced() -> None:
    items = [{"id": str(index)} for index in range(15)]
    payload = create_paginated_response(items, 1, 10, 15)

    assert len(payload["items"]) == 15
    assert payload["totalPages"] == 2


class RecordingRangeQuery:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def range(self, from_: int, to: int) -> RecordingRangeQuery:
        self.calls.append(("range", from_, to))
        return self


def test_pagination_range_is_applied_when_enabled() -> None:
    query = RecordingRangeQuery()

    result = apply_pagination_range(query, read_pagination_params({"page": "2", "pageSize": "25"}))

    assert result is query
    assert query.calls == [("range", 25, 49)]


def test_pagination_range_is_skipped_when_disabled() -> None:
    query = RecordingRangeQuery()

    apply_pagination_range(query, read_pagination_params({"q": "python"}))

    assert query.calls == []
