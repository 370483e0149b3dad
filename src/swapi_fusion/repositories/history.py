"""History repository - append and keyset-scan the history log.

Records are scanned in (partition_key, sort_key) order. A page is resumed
from the last returned key, so consecutive pages never overlap as long as
no rows are inserted behind the cursor between requests.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, or_, select

from swapi_fusion.models.history import (
    CUSTOM_PARTITION_PREFIX,
    FUSION_PARTITION_PREFIX,
    HistoryRecord,
    HistorySource,
)
from swapi_fusion.repositories.base import BaseRepository


@dataclass(frozen=True)
class ScanPosition:
    """Key of the last record returned by a scan."""

    partition_key: str
    sort_key: str


@dataclass
class ScanPage:
    """One page of scanned records plus the position to resume from."""

    records: list[HistoryRecord]
    next_position: ScanPosition | None


def fusion_sort_key(timestamp_ms: int, record_id: uuid.UUID) -> str:
    """Sort key for fusion records, zero-padded so it orders by time."""
    return f"FUSION#{timestamp_ms:013d}#{record_id}"


def custom_sort_key(timestamp_ms: int, record_id: uuid.UUID) -> str:
    """Sort key for custom records, zero-padded so it orders by time."""
    return f"CUSTOM#{timestamp_ms:013d}#{record_id}"


class HistoryRepository(BaseRepository[HistoryRecord]):
    """Repository for the append-only history log."""

    async def add_fusion(
        self,
        *,
        character_id: str,
        data: dict[str, Any],
        timestamp_ms: int,
        expires_at: int | None,
        metadata: dict[str, Any] | None = None,
    ) -> HistoryRecord:
        """Append a fusion result to the log and commit.

        Args:
            character_id: Fused character id
            data: Complete fusion result payload
            timestamp_ms: Creation time in epoch milliseconds
            expires_at: Epoch seconds after which the record is hidden
            metadata: Processing metadata

        Returns:
            The stored record
        """
        record_id = uuid.uuid4()
        record = HistoryRecord(
            id=record_id,
            partition_key=f"{FUSION_PARTITION_PREFIX}{character_id}",
            sort_key=fusion_sort_key(timestamp_ms, record_id),
            source=HistorySource.FUSION.value,
            character_id=character_id,
            timestamp=timestamp_ms,
            expires_at=expires_at,
            data=data,
            record_metadata=metadata,
        )
        return await self._commit_new(record)

    async def add_custom(
        self,
        *,
        data: Any,
        timestamp_ms: int,
        metadata: dict[str, Any] | None = None,
    ) -> HistoryRecord:
        """Append a custom payload to the log and commit. Never expires."""
        record_id = uuid.uuid4()
        record = HistoryRecord(
            id=record_id,
            partition_key=f"{CUSTOM_PARTITION_PREFIX}{record_id}",
            sort_key=custom_sort_key(timestamp_ms, record_id),
            source=HistorySource.CUSTOM.value,
            character_id=None,
            timestamp=timestamp_ms,
            expires_at=None,
            data=data,
            record_metadata=metadata,
        )
        return await self._commit_new(record)

    async def scan(
        self,
        *,
        prefixes: list[str],
        limit: int,
        now: int,
        start_time: int | None = None,
        end_time: int | None = None,
        after: ScanPosition | None = None,
    ) -> ScanPage:
        """Scan records whose partition key starts with one of the prefixes.

        Args:
            prefixes: Partition key prefixes to include
            limit: Maximum number of records in the page
            now: Current time in epoch seconds, hides expired records
            start_time: Inclusive lower bound on timestamp (epoch ms)
            end_time: Inclusive upper bound on timestamp (epoch ms)
            after: Resume strictly after this key

        Returns:
            The page and, when more matching records exist, the position
            of its last record
        """
        pk = HistoryRecord.partition_key
        sk = HistoryRecord.sort_key

        query = select(HistoryRecord).where(
            or_(*(pk.startswith(prefix, autoescape=True) for prefix in prefixes)),
            or_(HistoryRecord.expires_at.is_(None), HistoryRecord.expires_at > now),
        )

        if start_time is not None:
            query = query.where(HistoryRecord.timestamp >= start_time)
        if end_time is not None:
            query = query.where(HistoryRecord.timestamp <= end_time)
        if after is not None:
            query = query.where(
                or_(
                    pk > after.partition_key,
                    and_(pk == after.partition_key, sk > after.sort_key),
                )
            )

        # One extra row tells us whether another page exists
        query = query.order_by(pk, sk).limit(limit + 1)

        result = await self.session.execute(query)
        records = list(result.scalars().all())

        next_position = None
        if len(records) > limit:
            records = records[:limit]
            last = records[-1]
            next_position = ScanPosition(last.partition_key, last.sort_key)

        return ScanPage(records=records, next_position=next_position)

    async def purge_expired(self, now: int) -> int:
        """Delete records whose expiry has passed and commit.

        Records without an expiry are never touched.

        Args:
            now: Current time in epoch seconds

        Returns:
            Number of records deleted
        """
        try:
            deleted = await self.hard_delete_where(
                HistoryRecord.expires_at.is_not(None),
                HistoryRecord.expires_at <= now,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return deleted

    async def _commit_new(self, record: HistoryRecord) -> HistoryRecord:
        try:
            await self.create(record)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return record
