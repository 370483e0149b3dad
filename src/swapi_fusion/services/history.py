"""HistoryService - query and append to the history log.

Query parameters arrive as raw strings so that validation errors carry our
own messages and field names. Validation always completes before the store
is touched.

Pagination cursors are opaque URL-safe base64 tokens wrapping the key of
the last returned record. A cursor that cannot be decoded is logged and
ignored, which restarts the scan from the beginning.
"""

import base64
import binascii
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from swapi_fusion.config import Settings
from swapi_fusion.core.exceptions import StoreUnavailableError, ValidationError
from swapi_fusion.models.history import (
    CUSTOM_PARTITION_PREFIX,
    FUSION_PARTITION_PREFIX,
    HistoryRecord,
    HistorySource,
)
from swapi_fusion.repositories.history import HistoryRepository, ScanPosition

logger = structlog.get_logger(__name__)

SOURCE_ALL = "all"
# 9999-12-31T23:59:59.999Z, the last instant datetime can render
MAX_TIMESTAMP_MS = 253_402_300_799_999
VALID_SOURCES = (HistorySource.FUSION.value, HistorySource.CUSTOM.value, SOURCE_ALL)

SOURCE_PREFIXES: dict[str, list[str]] = {
    HistorySource.FUSION.value: [FUSION_PARTITION_PREFIX],
    HistorySource.CUSTOM.value: [CUSTOM_PARTITION_PREFIX],
    SOURCE_ALL: [CUSTOM_PARTITION_PREFIX, FUSION_PARTITION_PREFIX],
}


# -----------------------------------------------------------------------------
# Cursor encoding
# -----------------------------------------------------------------------------


def encode_cursor(position: ScanPosition) -> str:
    """Encode a scan position as an opaque URL-safe token."""
    raw = json.dumps(
        {"pk": position.partition_key, "sk": position.sort_key},
        separators=(",", ":"),
    ).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(token: str) -> ScanPosition:
    """Decode a token produced by encode_cursor.

    Raises:
        ValueError: If the token is not a valid cursor
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed cursor: {e}") from e

    if (
        not isinstance(payload, dict)
        or not isinstance(payload.get("pk"), str)
        or not isinstance(payload.get("sk"), str)
    ):
        raise ValueError("Malformed cursor: missing key fields")
    return ScanPosition(partition_key=payload["pk"], sort_key=payload["sk"])


def to_iso(timestamp_ms: int) -> str:
    """Render epoch milliseconds as an ISO 8601 UTC string."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialized_length(data: Any) -> int:
    """Length of the compact JSON serialization of a payload."""
    return len(json.dumps(data, separators=(",", ":"), ensure_ascii=False))


# -----------------------------------------------------------------------------
# Query model
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoryQuery:
    """A validated history query."""

    source: str
    limit: int
    start_time: int | None = None
    end_time: int | None = None
    after: ScanPosition | None = None


class HistoryService:
    """Validates history queries and runs them against the repository."""

    def __init__(
        self,
        repository: HistoryRepository,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.clock = clock

    def build_query(
        self,
        *,
        source: str | None = None,
        limit: str | int | None = None,
        start_time: str | int | None = None,
        end_time: str | int | None = None,
        cursor: str | None = None,
    ) -> HistoryQuery:
        """Validate raw query parameters.

        Raises:
            ValidationError: On an invalid limit, source or time range
        """
        parsed_limit = self._parse_limit(limit)

        resolved_source = source or SOURCE_ALL
        if resolved_source not in VALID_SOURCES:
            raise ValidationError(
                "Source must be one of: fusion, custom, all", field="source"
            )

        start = _parse_timestamp(start_time, "startTime")
        end = _parse_timestamp(end_time, "endTime")
        if start is not None and end is not None and start > end:
            raise ValidationError(
                "Start time cannot be greater than end time", field="startTime"
            )

        after = None
        if cursor:
            try:
                after = decode_cursor(cursor)
            except ValueError as e:
                logger.warning("history_cursor_invalid", cursor=cursor, error=str(e))

        return HistoryQuery(
            source=resolved_source,
            limit=parsed_limit,
            start_time=start,
            end_time=end,
            after=after,
        )

    async def query(self, query: HistoryQuery) -> dict[str, Any]:
        """Run a validated query.

        Returns:
            Dict with items, pagination and echoed filters

        Raises:
            StoreUnavailableError: If the history store cannot be read
        """
        try:
            page = await self.repository.scan(
                prefixes=SOURCE_PREFIXES[query.source],
                limit=query.limit,
                now=int(self.clock()),
                start_time=query.start_time,
                end_time=query.end_time,
                after=query.after,
            )
        except SQLAlchemyError as e:
            logger.error("history_query_failed", source=query.source, error=str(e))
            raise StoreUnavailableError(
                "History store unavailable", store="history"
            ) from e

        next_cursor = encode_cursor(page.next_position) if page.next_position else None
        items = [self._serialize(record) for record in page.records]

        logger.info(
            "history_query_success",
            source=query.source,
            count=len(items),
            has_next=next_cursor is not None,
        )
        return {
            "items": items,
            "pagination": {
                "limit": query.limit,
                "count": len(items),
                "hasNext": next_cursor is not None,
                "nextCursor": next_cursor,
            },
            "filters": {
                "source": query.source,
                "startTime": to_iso(query.start_time)
                if query.start_time is not None
                else None,
                "endTime": to_iso(query.end_time) if query.end_time is not None else None,
            },
        }

    async def store_custom(
        self,
        data: Any,
        *,
        client_metadata: dict[str, Any] | None = None,
        request_id: str | None = None,
        user_agent: str | None = None,
        client_ip: str | None = None,
    ) -> dict[str, Any]:
        """Persist a custom payload as a never-expiring history record.

        Raises:
            ValidationError: If data is missing or too large
            StoreUnavailableError: If the history store cannot be written
        """
        if data is None:
            raise ValidationError('Field "data" is required', field="data")

        size = serialized_length(data)
        max_size = self.settings.max_custom_data_length
        if size > max_size:
            logger.warning("store_payload_too_large", size=size, max_size=max_size)
            raise ValidationError(
                f"Data too large. Maximum size: {max_size} characters",
                field="data",
                details={"size": size, "maxSize": max_size},
            )

        metadata: dict[str, Any] = {
            "requestId": request_id,
            "userAgent": user_agent,
            "ip": client_ip,
        }
        if client_metadata:
            metadata["client"] = client_metadata

        timestamp_ms = int(self.clock() * 1000)
        try:
            record = await self.repository.add_custom(
                data=data, timestamp_ms=timestamp_ms, metadata=metadata
            )
        except SQLAlchemyError as e:
            logger.error("custom_store_failed", error=str(e))
            raise StoreUnavailableError(
                "History store unavailable", store="history"
            ) from e

        logger.info("custom_store_success", record_id=str(record.id), size=size)
        return {
            "id": str(record.id),
            "timestamp": record.timestamp,
            "data": record.data,
            "stored": True,
            "size": size,
        }

    def _parse_limit(self, limit: str | int | None) -> int:
        if limit is None or limit == "":
            return self.settings.history_default_page_size
        try:
            value = int(limit)
        except (TypeError, ValueError):
            value = 0
        if value < 1:
            raise ValidationError("Limit must be a positive integer", field="limit")
        return min(value, self.settings.history_max_page_size)

    @staticmethod
    def _serialize(record: HistoryRecord) -> dict[str, Any]:
        item: dict[str, Any] = {
            "id": str(record.id),
            "source": record.source,
            "data": record.data,
            "timestamp": record.timestamp,
            "createdAt": to_iso(record.timestamp),
            "metadata": record.record_metadata,
        }
        if record.character_id is not None:
            item["characterId"] = record.character_id
        return item


def _parse_timestamp(value: str | int | None, field: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{field} must be an integer timestamp in milliseconds", field=field
        ) from None
    if not 0 <= parsed <= MAX_TIMESTAMP_MS:
        raise ValidationError(
            f"{field} must be between 0 and {MAX_TIMESTAMP_MS}",
            field=field,
            details={"min": 0, "max": MAX_TIMESTAMP_MS},
        )
    return parsed
