# This file implements the list, write, duplicate, and bulk services for admin-managed entities.
# It exists so routers can stay transport-focused while query shaping and store calls live in one layer.
# Every entity shares the same normalized list query, deterministic ordering, and pagination envelope.
# Writes only touch the columns the entity definition marks as writable.

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Mapping
from typing import Any

from prometheus_client import Counter

from src.api.api_config import ApiConfig
from src.api.bulk import BulkMutationResult, dispatch_bulk_mutation, parse_bulk_request
from src.api.db_access import DatabaseClient, TableQuery
from src.api.entities import ENTITIES_BY_SLUG, EntityDefinition
from src.api.error_handlers import NotFoundError, ValidationError
from src.api.list_query import (
    apply_search_filter,
    apply_translation_filter,
    read_list_query,
)
from src.api.ordering import ORDER_COLUMN, get_next_order_value
from src.api.pagination import apply_pagination_range, create_paginated_response

LOGGER = logging.getLogger("admin")

_MONTH_DATE_RE = re.compile(r"^\d{4}-\d{2}$")

ADMIN_BULK_MUTATIONS_TOTAL = Counter(
    "admin_bulk_mutations_total",
    "Bulk mutation requests applied per entity and action.",
    ["entity", "action"],
)
ADMIN_BULK_AFFECTED_ROWS_TOTAL = Counter(
    "admin_bulk_affected_rows_total",
    "Rows matched by bulk mutations per entity and action.",
    ["entity", "action"],
)
ADMIN_DUPLICATES_TOTAL = Counter(
    "admin_duplicates_total",
    "Records duplicated per entity.",
    ["entity"],
)


def normalize_month_date(value: Any) -> Any:
    """Turn a `YYYY-MM` month picker value into the first day of that month."""

    if value is None or value == "":
        return None
    if isinstance(value, str) and _MONTH_DATE_RE.match(value):
        return f"{value}-01"
    return value


def coerce_order_value(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if math.isfinite(number) else 0


def _filter_param_value(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return raw


def _required_message(fields: list[str]) -> str:
    if len(fields) == 1:
        return f"{fields[0]} is required"
    if len(fields) == 2:
        return f"{fields[0]} and {fields[1]} are required"
    return f"{', '.join(fields[:-1])}, and {fields[-1]} are required"


def _unique_strings(values: list[Any]) -> list[str]:
    return list(dict.fromkeys(value for value in values if isinstance(value, str) and value))


class EntityService:
    """Store access for one admin-managed entity."""

    def __init__(self, *, definition: EntityDefinition, config: ApiConfig, db: DatabaseClient) -> None:
        self.definition = definition
        self.config = config
        self.db = db
        self.table = self.config.validate_table_name(definition.table)
        self.link_table = (
            self.config.validate_table_name(definition.link.table) if definition.link else None
        )

    def list_records(
        self, params: Mapping[str, Any], *, is_admin: bool
    ) -> dict[str, Any] | list[dict[str, Any]]:
        definition = self.definition
        normalized = read_list_query(
            params,
            sort_fields=definition.sort_fields,
            default_sort_by=definition.default_sort_by,
            default_sort_dir=definition.default_sort_dir,
            default_page_size=self.config.default_page_size,
            max_page_size=self.config.max_page_size,
            max_search_length=self.config.max_search_length,
        )
        pagination = normalized.pagination

        query = self._query().select("*", count=pagination.enabled)
        query = query.order(normalized.sort.field, ascending=normalized.sort.ascending)
        if normalized.sort.field != "id":
            query = query.order("id", ascending=True)

        query = apply_search_filter(query, normalized.search, definition.search_columns)
        if definition.translation_columns is not None:
            english_column, french_column = definition.translation_columns
            query = apply_translation_filter(
                query, normalized.translation_filter, english_column, french_column
            )
        query = self._apply_visibility(query, params, is_admin=is_admin)

        query = apply_pagination_range(query, pagination)

        result = query.execute()
        if not pagination.enabled:
            return result.rows
        return create_paginated_response(
            result.rows,
            pagination.page,
            pagination.page_size,
            result.count if result.count is not None else 0,
        )

    def get_record(self, record_id: str, *, is_admin: bool = True) -> dict[str, Any]:
        query = self._query().select("*").eq("id", record_id)
        if not is_admin:
            for column, value in self.definition.public_filters.items():
                query = query.eq(column, value)
        row = query.maybe_single()
        if row is None:
            raise NotFoundError(f"{self.definition.label} not found")
        return row

    def create_record(self, payload: Any, *, is_admin: bool) -> dict[str, Any]:
        definition = self.definition
        if not isinstance(payload, Mapping):
            raise ValidationError("invalid request body")

        missing = [
            name
            for name in definition.required_fields
            if not isinstance(payload.get(name), str) or not payload[name].strip()
        ]
        if missing:
            raise ValidationError(_required_message(missing), details={"fields": missing})

        values = {**definition.create_defaults, **self._clean_values(payload)}
        if not is_admin:
            values.update(definition.create_defaults)
        if definition.has_order and ORDER_COLUMN not in values:
            values[ORDER_COLUMN] = 0

        created = self._query().insert(values)[0]
        link_ids = self._link_ids(payload)
        if link_ids:
            self._insert_links(created["id"], link_ids)
        LOGGER.info("created %s id=%s", definition.label, created.get("id"))
        return created

    def update_record(self, record_id: str, payload: Any) -> dict[str, Any]:
        definition = self.definition
        if not isinstance(payload, Mapping):
            raise ValidationError("invalid request body")

        values = self._clean_values(payload)
        link_ids = self._link_ids(payload)
        if not values and link_ids is None:
            raise ValidationError("no updatable fields provided")
        for name in definition.required_fields:
            if name in values and (not isinstance(values[name], str) or not values[name].strip()):
                raise ValidationError(f"{name} cannot be empty", details={"fields": [name]})

        if values:
            affected = self._query().eq("id", record_id).update(values)
            if affected == 0:
                raise NotFoundError(f"{definition.label} not found")
        else:
            self.get_record(record_id)

        if link_ids is not None and definition.link is not None:
            self._link_query().eq(definition.link.owner_column, record_id).delete()
            if link_ids:
                self._insert_links(record_id, link_ids)
        return self.get_record(record_id)

    def delete_record(self, record_id: str) -> None:
        affected = self._query().eq("id", record_id).delete()
        if affected == 0:
            raise NotFoundError(f"{self.definition.label} not found")
        LOGGER.info("deleted %s id=%s", self.definition.label, record_id)

    def duplicate_record(self, record_id: str) -> dict[str, Any]:
        """Copy a record into a new row ordered after every existing row of the table."""

        definition = self.definition
        if not definition.supports_duplicate or definition.duplicate_fields is None:
            raise NotFoundError(f"{definition.label} cannot be duplicated")

        source = (
            self._query()
            .select(",".join(definition.duplicate_fields))
            .eq("id", record_id)
            .maybe_single()
        )
        if source is None:
            raise NotFoundError(f"{definition.label} not found")

        next_order = get_next_order_value(self.db, self.table)
        created = self._query().insert({**source, ORDER_COLUMN: next_order})[0]

        if definition.link is not None:
            link = definition.link
            existing = (
                self._link_query()
                .select(link.target_column)
                .eq(link.owner_column, record_id)
                .execute()
                .rows
            )
            target_ids = [row[link.target_column] for row in existing]
            if target_ids:
                self._insert_links(created["id"], target_ids)

        ADMIN_DUPLICATES_TOTAL.labels(entity=definition.slug).inc()
        LOGGER.info(
            "duplicated %s source_id=%s new_id=%s order=%s",
            definition.label,
            record_id,
            created.get("id"),
            next_order,
        )
        return created

    def bulk_mutate(self, body: Any, *, on_success: Callable[[], None] | None = None) -> BulkMutationResult:
        definition = self.definition
        request = parse_bulk_request(body)
        result = dispatch_bulk_mutation(
            self.db,
            self.table,
            request,
            definition.bulk_actions,
            on_success=on_success if definition.revalidates else None,
        )
        ADMIN_BULK_MUTATIONS_TOTAL.labels(entity=definition.slug, action=result.action).inc()
        ADMIN_BULK_AFFECTED_ROWS_TOTAL.labels(entity=definition.slug, action=result.action).inc(
            result.affected
        )
        return result

    def _query(self) -> TableQuery:
        return self.db.table(self.table)

    def _link_query(self) -> TableQuery:
        if self.link_table is None:
            raise RuntimeError(f"{self.definition.slug} has no link table")
        return self.db.table(self.link_table)

    def _apply_visibility(
        self, query: TableQuery, params: Mapping[str, Any], *, is_admin: bool
    ) -> TableQuery:
        if not is_admin:
            for column, value in self.definition.public_filters.items():
                query = query.eq(column, value)
            return query

        for column, allowed in self.definition.admin_filter_params.items():
            raw = params.get(column)
            if isinstance(raw, str) and raw in allowed:
                query = query.eq(column, _filter_param_value(raw))
        return query

    def _clean_values(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        definition = self.definition
        values: dict[str, Any] = {}
        for name in definition.writable_fields:
            if name not in payload:
                continue
            value = payload[name]
            if name == ORDER_COLUMN:
                value = coerce_order_value(value)
            elif name in definition.month_date_fields:
                value = normalize_month_date(value)
            elif value == "" and name not in definition.required_fields:
                value = None
            values[name] = value

        for name, allowed in definition.choice_fields.items():
            if name in values and values[name] not in allowed:
                choices = ", ".join(sorted(allowed))
                raise ValidationError(f"{name} must be one of: {choices}", details={"fields": [name]})
        return values

    def _link_ids(self, payload: Mapping[str, Any]) -> list[str] | None:
        link = self.definition.link
        if link is None:
            return None
        raw = payload.get(link.payload_key)
        if not isinstance(raw, list):
            return None
        return _unique_strings(raw)

    def _insert_links(self, owner_id: Any, target_ids: list[Any]) -> None:
        link = self.definition.link
        if link is None:
            return
        self._link_query().insert(
            [{link.owner_column: owner_id, link.target_column: target_id} for target_id in target_ids]
        )


class EntityServiceRegistry:
    """Per-request lookup of entity services sharing one config and store client."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self._services: dict[str, EntityService] = {}

    def for_entity(self, slug: str) -> EntityService:
        service = self._services.get(slug)
        if service is None:
            service = EntityService(definition=ENTITIES_BY_SLUG[slug], config=self.config, db=self.db)
            self._services[slug] = service
        return service
