"""
Unit tests for bulk request parsing and dispatch.
It asserts expected behavior and guards against regressions in the corresponding component.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import pytest

from src.api.bulk import (
    DELETE_ACTION,
    BulkRequest,
    EmptyIdsError,
    InvalidBodyError,
    MissingActionError,
    UnsupportedActionError,
    dispatch_bulk_mutation,
    parse_bulk_request,
    set_column_action,
)
from src.api.error_handlers import StoreError

TESTIMONIAL_ACTIONS = {
    "approve": set_column_action("approve", "status", "approved"),
    "reject": set_column_action("reject", "status", "rejected"),
    "delete": DELETE_ACTION,
}


class FakeBulkQuery:
    def __init__(self, client: FakeBulkClient, table: str) -> None:
        self.client = client
        self.table = table

    def in_(self, column: str, values: Iterable[Any]) -> FakeBulkQuery:
        self.client.calls.append(("in", self.table, column, list(values)))
        return self

    def update(self, values: Mapping[str, Any]) -> int:
        if self.client.error is not None:
            raise self.client.error
        self.client.calls.append(("update", dict(values)))
        return self.client.affected

    def delete(self) -> int:
        if self.client.error is not None:
            raise self.client.error
        self.client.calls.append(("delete",))
        return self.client.affected


class FakeBulkClient:
    def __init__(self, *, affected: int = 0, error: Exception | None = None) -> None:
        self.affected = affected
        self.error = error
        self.calls: list[tuple[Any, ...]] = []

    def table(self, table_name: str) -> FakeBulkQuery:
        return FakeBulkQuery(self, table_name)


def test_ids_are_deduplicated_in_first_seen_order() -> None:
    request = parse_bulk_request(b'{"action": "delete", "ids": ["a", "a", "b"]}')

    assert request == BulkRequest(action="delete", ids=("a", "b"))


def test_non_string_ids_are_dropped() -> None:
    request = parse_bulk_request({"action": "approve", "ids": ["a", 3, None, "c"]})

    assert request.ids == ("a", "c")


def test_empty_action_is_rejected() -> None:
    with pytest.raises(MissingActionError) as exc_info:
        parse_bulk_request('{"action": "", "ids": ["a"]}')

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "action is required"


def test_missing_ids_are_rejected() -> None:
    with pytest.raises(EmptyIdsError) as exc_info:
        parse_bulk_request({"action": "delete", "ids": []})

    assert exc_info.value.message == "ids must contain at least one id"


def test_action_is_checked_before_ids() -> None:
    with pytest.raises(MissingActionError):
        parse_bulk_request({"ids": []})


def test_invalid_json_is_rejected() -> None:
    with pytest.raises(InvalidBodyError) as exc_info:
        parse_bulk_request(b"{not json")

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "invalid json body"


def test_non_object_body_is_rejected() -> None:
    with pytest.raises(InvalidBodyError) as exc_info:
        parse_bulk_request(b'["delete"]')

    assert exc_info.value.message == "invalid request body"


def test_status_action_issues_one_filtered_update() -> None:
    client = FakeBulkClient(affected=2)
    invalidations: list[str] = []

    result = dispatch_bulk_mutation(
        client,
        "testimonials",
        BulkRequest(action="approve", ids=("a", "b", "missing")),
        TESTIMONIAL_ACTIONS,
        on_success=lambda: invalidations.append("called"),
    )

    assert client.calls == [
        ("in", "testimonials", "id", ["a", "b", "missing"]),
        ("update", {"status": "approved"}),
    ]
    assert result.affected == 2
    assert result.requested == 3
    assert result.success is True
    assert invalidations == ["called"]


def test_delete_action_issues_one_filtered_delete() -> None:
    client = FakeBulkClient(affected=1)

    result = dispatch_bulk_mutation(
        client, "testimonials", BulkRequest(action="delete", ids=("a",)), TESTIMONIAL_ACTIONS
    )

    assert client.calls[-1] == ("delete",)
    assert result.action == "delete"
    assert result.affected == 1


def test_unsupported_action_never_touches_store() -> None:
    client = FakeBulkClient()
    invalidations: list[str] = []

    with pytest.raises(UnsupportedActionError) as exc_info:
        dispatch_bulk_mutation(
            client,
            "testimonials",
            BulkRequest(action="publish", ids=("a",)),
            TESTIMONIAL_ACTIONS,
            on_success=lambda: invalidations.append("called"),
        )

    assert exc_info.value.message == "unsupported bulk action"
    assert exc_info.value.details["supported_actions"] == ["approve", "delete", "reject"]
    assert client.calls == []
    assert invalidations == []


def test_store_failure_skips_invalidation() -> None:
    client = FakeBulkClient(error=StoreError("connection reset"))
    invalidations: list[str] = []

    with pytest.raises(StoreError, match="connection reset"):
        dispatch_bulk_mutation(
            client,
            "testimonials",
            BulkRequest(action="reject", ids=("a",)),
            TESTIMONIAL_ACTIONS,
            on_success=lambda: invalidations.append("called"),
        )

    assert invalidations == []
