# This file wraps database access behind a small chainable table-query builder.
# It exists so services compose filters, ordering, and row ranges without writing SQL strings.
# Table names are allow-listed, columns are reflected, and every value travels as a bound parameter.
# Store failures surface as StoreError with the driver message passed through unchanged.

from __future__ import annotations

import logging
import re
import threading
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy import MetaData, Table, create_engine, func, inspect, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from src.api.error_handlers import StoreError
from src.api.filter_expression import FilterTerm, parse_or_filter

LOGGER = logging.getLogger("store")

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]]
    count: int | None = None


def _store_error(exc: SQLAlchemyError) -> StoreError:
    original = getattr(exc, "orig", None)
    message = str(original or exc)
    LOGGER.warning("store operation failed: %s", message)
    return StoreError(message)


class TableQuery:
    """Chainable filter/order/range builder bound to one reflected table."""

    def __init__(self, *, engine: Engine, table: Table) -> None:
        self._engine = engine
        self._table = table
        self._column_names: list[str] | None = None
        self._with_count = False
        self._where: list[Any] = []
        self._order_by: list[Any] = []
        self._limit: int | None = None
        self._offset: int | None = None

    @property
    def table_name(self) -> str:
        return self._table.name

    def select(self, columns: str = "*", *, count: bool = False) -> Self:
        names = [name.strip() for name in columns.split(",") if name.strip()]
        if names and names != ["*"]:
            for name in names:
                self._column(name)
            self._column_names = names
        else:
            self._column_names = None
        self._with_count = count
        return self

    def eq(self, column: str, value: Any) -> Self:
        self._where.append(self._predicate(column, "eq", value))
        return self

    def neq(self, column: str, value: Any) -> Self:
        self._where.append(self._predicate(column, "neq", value))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> Self:
        col = self._column(column)
        self._where.append(col.in_([self._coerce(col, value) for value in values]))
        return self

    def ilike(self, column: str, pattern: str) -> Self:
        self._where.append(self._predicate(column, "ilike", pattern))
        return self

    def not_(self, column: str, operator: str, value: Any) -> Self:
        self._where.append(sa.not_(self._predicate(column, operator, value)))
        return self

    def or_(self, filters: str) -> Self:
        try:
            terms = parse_or_filter(filters)
        except ValueError as exc:
            raise StoreError(str(exc)) from exc
        self._where.append(sa.or_(*(self._term(term) for term in terms)))
        return self

    def order(self, column: str, *, ascending: bool = True, nulls_last: bool = True) -> Self:
        col = self._column(column)
        clause = col.asc() if ascending else col.desc()
        self._order_by.append(clause.nulls_last() if nulls_last else clause.nulls_first())
        return self

    def limit(self, value: int) -> Self:
        self._limit = max(0, int(value))
        return self

    def range(self, from_: int, to: int) -> Self:
        """Restrict to the zero-based inclusive row range [from_, to]."""

        self._offset = max(0, int(from_))
        self._limit = max(0, int(to) - self._offset + 1)
        return self

    def execute(self) -> QueryResult:
        if self._column_names is None:
            columns = list(self._table.c)
        else:
            columns = [self._column(name) for name in self._column_names]

        statement = select(*columns)
        if self._where:
            statement = statement.where(*self._where)
        if self._order_by:
            statement = statement.order_by(*self._order_by)
        if self._limit is not None:
            statement = statement.limit(self._limit)
        if self._offset:
            statement = statement.offset(self._offset)

        try:
            with self._engine.connect() as connection:
                count: int | None = None
                if self._with_count:
                    count_statement = select(func.count()).select_from(self._table)
                    if self._where:
                        count_statement = count_statement.where(*self._where)
                    count = int(connection.execute(count_statement).scalar_one())
                rows = [dict(row) for row in connection.execute(statement).mappings().all()]
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        return QueryResult(rows=rows, count=count)

    def maybe_single(self) -> dict[str, Any] | None:
        self._limit = 1
        rows = self.execute().rows
        return rows[0] if rows else None

    def insert(self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Insert one or many rows and return them as stored."""

        if isinstance(values, Mapping):
            records = [dict(values)]
        else:
            records = [dict(record) for record in values]
        if not records:
            return []

        id_column = self._table.c.get("id")
        generate_ids = (
            id_column is not None
            and isinstance(id_column.type, sa.String)
            and id_column.server_default is None
        )
        if generate_ids:
            for record in records:
                record.setdefault("id", str(uuid.uuid4()))
        records = [self._coerce_record(record) for record in records]

        statement = sa.insert(self._table).returning(*self._table.c)
        try:
            with self._engine.begin() as connection:
                result = connection.execute(statement, records)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc

    def update(self, values: Mapping[str, Any]) -> int:
        """Apply `values` to every row matching the current filters; return the matched count."""

        self._require_filters("update")
        statement = sa.update(self._table).where(*self._where).values(**self._coerce_record(values))
        return self._execute_mutation(statement)

    def delete(self) -> int:
        """Delete every row matching the current filters; return the matched count."""

        self._require_filters("delete")
        statement = sa.delete(self._table).where(*self._where)
        return self._execute_mutation(statement)

    def _execute_mutation(self, statement: Any) -> int:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(statement)
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc

    def _require_filters(self, operation: str) -> None:
        if not self._where:
            raise StoreError(f"{operation} on {self._table.name} requires at least one filter")

    def _column(self, name: str) -> Any:
        if name not in self._table.c:
            raise StoreError(f'column {self._table.name}.{name} does not exist')
        return self._table.c[name]

    def _term(self, term: FilterTerm) -> Any:
        return self._predicate(term.column, term.operator, term.value)

    def _predicate(self, column: str, operator: str, value: Any) -> Any:
        col = self._column(column)
        if operator == "is" or (operator == "eq" and value is None):
            return col.is_(value)
        if operator == "eq":
            return col == self._coerce(col, value)
        if operator == "neq":
            return col != self._coerce(col, value)
        if operator == "ilike":
            return col.ilike(value)
        if operator == "like":
            return col.like(value)
        raise StoreError(f"Unsupported filter operator: {operator!r}")

    @staticmethod
    def _coerce(col: Any, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if isinstance(col.type, sa.Uuid) and col.type.as_uuid:
            try:
                return uuid.UUID(value)
            except ValueError as exc:
                raise StoreError(f'invalid input syntax for type uuid: "{value}"') from exc
        if isinstance(col.type, sa.DateTime):
            try:
                return datetime.fromisoformat(value)
            except ValueError as exc:
                raise StoreError(f'invalid input syntax for type timestamp: "{value}"') from exc
        if isinstance(col.type, sa.Date):
            try:
                return date.fromisoformat(value)
            except ValueError as exc:
                raise StoreError(f'invalid input syntax for type date: "{value}"') from exc
        return value

    def _coerce_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {name: self._coerce(self._column(name), value) for name, value in record.items()}


class DatabaseClient:
    """SQLAlchemy-backed store client exposing table-scoped query builders."""

    def __init__(self, *, database_url: str, allowed_table_names: Iterable[str] | None = None) -> None:
        self._engine: Engine = create_engine(database_url, pool_pre_ping=True, future=True)
        self._allowed_table_names = set(allowed_table_names) if allowed_table_names is not None else None
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}
        self._reflect_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        return self._engine

    def can_connect(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def table_exists(self, table_name: str) -> bool:
        self._validate_identifier(table_name)
        try:
            return bool(inspect(self._engine).has_table(table_name))
        except SQLAlchemyError:
            return False

    def table(self, table_name: str) -> TableQuery:
        return TableQuery(engine=self._engine, table=self._reflect(table_name))

    def _reflect(self, table_name: str) -> Table:
        safe_table = self._validate_identifier(table_name)
        if self._allowed_table_names is not None and safe_table not in self._allowed_table_names:
            raise ValueError(f"Table name is not in allowlist: {safe_table!r}")

        with self._reflect_lock:
            cached = self._tables.get(safe_table)
            if cached is not None:
                return cached
            try:
                reflected = Table(safe_table, self._metadata, autoload_with=self._engine)
            except NoSuchTableError as exc:
                raise StoreError(f'relation "{safe_table}" does not exist') from exc
            except SQLAlchemyError as exc:
                raise _store_error(exc) from exc
            self._tables[safe_table] = reflected
            return reflected

    def _validate_identifier(self, identifier: str) -> str:
        if not _IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
        return identifier
