# This file parses the compact filter-expression strings used for OR groups on list queries.
# It exists so list endpoints can express "any of these column predicates" as one string.
# Fragments look like `column.operator.value` and are separated by commas.
# Commas, parentheses, and quotes are syntax here, so free text must be sanitized before embedding.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

SUPPORTED_OPERATORS: frozenset[str] = frozenset({"eq", "neq", "is", "ilike", "like"})

_IS_LITERALS: dict[str, Any] = {"null": None, "true": True, "false": False}


@dataclass(frozen=True)
class FilterTerm:
    column: str
    operator: str
    value: Any


def _parse_value(operator: str, raw_value: str) -> Any:
    if operator == "is":
        literal = raw_value.lower()
        if literal not in _IS_LITERALS:
            raise ValueError(f"'is' filters accept null, true, or false; got {raw_value!r}")
        return _IS_LITERALS[literal]
    if raw_value == '""':
        return ""
    return raw_value


def parse_filter_term(fragment: str) -> FilterTerm:
    """Parse one `column.operator.value` fragment."""

    parts = fragment.strip().split(".", 2)
    if len(parts) != 3:
        raise ValueError(f"Malformed filter fragment: {fragment!r}")
    column, operator, raw_value = parts
    if not _IDENTIFIER_RE.match(column):
        raise ValueError(f"Unsafe column name in filter: {column!r}")
    if operator not in SUPPORTED_OPERATORS:
        raise ValueError(f"Unsupported filter operator: {operator!r}")
    return FilterTerm(column=column, operator=operator, value=_parse_value(operator, raw_value))


def parse_or_filter(expression: str) -> list[FilterTerm]:
    """Parse a comma-separated OR group into filter terms."""

    fragments = [fragment for fragment in expression.split(",") if fragment.strip()]
    if not fragments:
        raise ValueError("Filter expression cannot be empty")
    return [parse_filter_term(fragment) for fragment in fragments]
