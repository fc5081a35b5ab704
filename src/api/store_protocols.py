# This file declares the narrow store capabilities the list/mutation helpers depend on.
# It exists so each helper names only the builder methods it calls, not the full client type.
# Any backend whose query builder offers these methods can drive the same helpers.
# Tests rely on this to exercise the helpers with small in-memory fakes.

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, Self

from src.api.db_access import QueryResult


class FilterPredicateQuery(Protocol):
    """Builder that can append OR groups, negations, and inequality predicates."""

    def or_(self, filters: str) -> Self: ...

    def not_(self, column: str, operator: str, value: Any) -> Self: ...

    def neq(self, column: str, value: Any) -> Self: ...


class RangeQuery(Protocol):
    def range(self, from_: int, to: int) -> Self: ...


class OrderValueQuery(Protocol):
    def select(self, columns: str = "*", *, count: bool = False) -> Self: ...

    def order(self, column: str, *, ascending: bool = True, nulls_last: bool = True) -> Self: ...

    def limit(self, value: int) -> Self: ...

    def execute(self) -> QueryResult: ...


class OrderQueryClient(Protocol):
    def table(self, table_name: str) -> OrderValueQuery: ...


class BulkMutationQuery(Protocol):
    def in_(self, column: str, values: Iterable[Any]) -> Self: ...

    def update(self, values: Mapping[str, Any]) -> int: ...

    def delete(self) -> int: ...


class BulkMutationClient(Protocol):
    def table(self, table_name: str) -> BulkMutationQuery: ...
