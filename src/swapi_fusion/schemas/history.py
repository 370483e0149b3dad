"""Schemas for the /history endpoint."""

from typing import Any

from pydantic import Field

from swapi_fusion.schemas.common import BaseSchema


class HistoryItem(BaseSchema):
    """A fusion or custom record as returned by /history."""

    id: str
    source: str = Field(..., description="fusion or custom")
    character_id: str | None = None
    data: Any
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    created_at: str = Field(..., description="Creation time (ISO 8601, UTC)")
    metadata: dict[str, Any] | None = None


class HistoryPagination(BaseSchema):
    limit: int
    count: int
    has_next: bool
    next_cursor: str | None = Field(
        None, description="Opaque token to pass back as cursor for the next page"
    )


class HistoryFilters(BaseSchema):
    source: str
    start_time: str | None = None
    end_time: str | None = None


class HistoryPage(BaseSchema):
    items: list[HistoryItem]
    pagination: HistoryPagination
    filters: HistoryFilters
