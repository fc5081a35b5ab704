# This file allocates manual sort-order values for duplicated records.
# It exists so a copy always lands after every existing row of its table.
# The max lookup and the later insert are separate store calls, so two concurrent
# duplicates of the same table can receive the same order value.

from __future__ import annotations

import logging
import math
from typing import Any

from src.api.store_protocols import OrderQueryClient

LOGGER = logging.getLogger("admin")

ORDER_COLUMN = "order"


def _finite_order(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def get_next_order_value(client: OrderQueryClient, table: str) -> int:
    """Return the table's current maximum `order` plus one, or 0 for an empty table.

    Store failures propagate; they are never mapped to a silent 0.
    """

    result = (
        client.table(table)
        .select(ORDER_COLUMN)
        .order(ORDER_COLUMN, ascending=False, nulls_last=True)
        .limit(1)
        .execute()
    )
    current = _finite_order(result.rows[0].get(ORDER_COLUMN)) if result.rows else None
    next_value = 0 if current is None else int(current) + 1
    LOGGER.debug("next order value table=%s value=%s", table, next_value)
    return next_value
