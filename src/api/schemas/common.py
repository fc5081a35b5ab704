# This file defines shared schema pieces reused by every entity endpoint.
# It exists so paginated list, bulk mutation, and error payloads stay consistent.
# Shared models reduce duplication and keep contract changes easier to review.
# These classes are also used by tests to validate response shape stability.

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PaginatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[dict[str, Any]]
    page: int = Field(ge=1)
    page_size: int = Field(ge=1, alias="pageSize")
    total: int = Field(ge=0)
    total_pages: int = Field(ge=1, alias="totalPages")


class BulkMutationRequest(BaseModel):
    """Documented shape of a bulk body; parsing itself is done on the raw body."""

    action: str
    ids: list[str]


class BulkMutationResponse(BaseModel):
    success: bool = True
    affected: int = Field(ge=0)


class DeleteResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    error_code: str
    details: Any | None = None
    request_id: str
    timestamp: datetime
