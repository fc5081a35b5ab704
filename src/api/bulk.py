# This file parses batch mutation requests and applies them as one store call each.
# It exists so approve/reject/delete style actions share validation and reporting rules.
# Malformed bodies fail fast with a 400 before anything reaches the store.
# Each entity passes its own action allow-list; unknown actions never touch the store.

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.api.error_handlers import ValidationError
from src.api.store_protocols import BulkMutationClient

LOGGER = logging.getLogger("admin")


class InvalidBodyError(ValidationError):
    def __init__(self, message: str = "invalid request body") -> None:
        super().__init__(message, error_code="INVALID_BODY")


class MissingActionError(ValidationError):
    def __init__(self) -> None:
        super().__init__("action is required", error_code="MISSING_ACTION")


class EmptyIdsError(ValidationError):
    def __init__(self) -> None:
        super().__init__("ids must contain at least one id", error_code="EMPTY_IDS")


class UnsupportedActionError(ValidationError):
    def __init__(self, action: str, supported: list[str]) -> None:
        super().__init__(
            "unsupported bulk action",
            error_code="UNSUPPORTED_ACTION",
            details={"action": action, "supported_actions": supported},
        )


@dataclass(frozen=True)
class BulkRequest:
    action: str
    ids: tuple[str, ...]


@dataclass(frozen=True)
class BulkAction:
    """A recognized bulk action; `updates` of None means delete."""

    name: str
    updates: Mapping[str, Any] | None = None

    @property
    def is_delete(self) -> bool:
        return self.updates is None


@dataclass(frozen=True)
class BulkMutationResult:
    action: str
    requested: int
    affected: int
    success: bool = field(default=True)


DELETE_ACTION = BulkAction(name="delete")


def set_column_action(name: str, column: str, value: Any) -> BulkAction:
    return BulkAction(name=name, updates={column: value})


def parse_bulk_request(body: Any) -> BulkRequest:
    """Validate a `{"action": str, "ids": [str]}` body.

    `body` may be the raw request bytes/text or an already-decoded object.
    Non-string ids are dropped and duplicates collapse, keeping first-seen order.
    """

    if isinstance(body, (bytes, bytearray, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidBodyError("invalid json body") from exc

    if not isinstance(body, dict):
        raise InvalidBodyError()

    action_value = body.get("action")
    ids_value = body.get("ids")

    action = action_value if isinstance(action_value, str) else ""
    if isinstance(ids_value, list):
        ids = tuple(dict.fromkeys(item for item in ids_value if isinstance(item, str)))
    else:
        ids = ()

    if not action:
        raise MissingActionError()
    if not ids:
        raise EmptyIdsError()

    return BulkRequest(action=action, ids=ids)


def dispatch_bulk_mutation(
    client: BulkMutationClient,
    table: str,
    request: BulkRequest,
    actions: Mapping[str, BulkAction],
    *,
    on_success: Callable[[], None] | None = None,
) -> BulkMutationResult:
    """Apply one filtered delete or update for the whole id set.

    `affected` is what the store matched and may be lower than the number of ids.
    `on_success` runs once, only after the store call returned.
    """

    action = actions.get(request.action)
    if action is None:
        raise UnsupportedActionError(request.action, sorted(actions))

    query = client.table(table).in_("id", list(request.ids))
    if action.is_delete:
        affected = query.delete()
    else:
        affected = query.update(dict(action.updates or {}))

    LOGGER.info(
        "bulk mutation table=%s action=%s requested=%s affected=%s",
        table,
        action.name,
        len(request.ids),
        affected,
    )
    if on_success is not None:
        on_success()
    return BulkMutationResult(action=action.name, requested=len(request.ids), affected=affected)
