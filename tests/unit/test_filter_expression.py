"""
Unit tests for the OR-group filter expression parser.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

import pytest

from src.api.filter_expression import FilterTerm, parse_filter_term, parse_or_filter


def test_parses_comma_separated_terms() -> None:
    terms = parse_or_filter('name_en.is.null,name_en.eq.""')

    assert terms == [
        FilterTerm(column="name_en", operator="is", value=None),
        FilterTerm(column="name_en", operator="eq", value=""),
    ]


def test_value_keeps_embedded_dots() -> None:
    term = parse_filter_term("title_en.ilike.%node.js%")

    assert term == FilterTerm(column="title_en", operator="ilike", value="%node.js%")


def test_is_accepts_boolean_literals() -> None:
    assert parse_filter_term("read.is.true").value is True
    assert parse_filter_term("read.is.FALSE").value is False


@pytest.mark.parametrize(
    "fragment",
    ["name_en", "name_en.eq", "name-en.eq.x", "name_en.gt.3", "name_en.is.maybe"],
)
def test_malformed_fragments_are_rejected(fragment: str) -> None:
    with pytest.raises(ValueError):
        parse_filter_term(fragment)


def test_empty_expression_is_rejected() -> None:
    with pytest.raises(ValueError, match="cannot be empty"):
        parse_or_filter(" , ")
