"""HistoryRecord model - append-only log of fusions and custom payloads.

Records live in two logical partitions distinguished by the partition key
prefix:

    FUSIONED#{character_id}   fusion results, one partition per character
    CUSTOM#{record_id}        custom payloads posted to /store

The sort key encodes the creation time so that a scan ordered by
(partition_key, sort_key) is stable and resumable from any returned row.
"""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from swapi_fusion.models.base import Base, UUIDPrimaryKeyMixin


class HistorySource(str, Enum):
    """Source tags stored on every history record."""

    FUSION = "fusion"
    CUSTOM = "custom"


FUSION_PARTITION_PREFIX = "FUSIONED#"
CUSTOM_PARTITION_PREFIX = "CUSTOM#"


class HistoryRecord(UUIDPrimaryKeyMixin, Base):
    """A single fusion or custom history entry.

    Attributes:
        partition_key: Category key (FUSIONED#{character_id} or CUSTOM#{id})
        sort_key: Time-ordered key within the partition
        source: "fusion" or "custom"
        character_id: Character id for fusion records, None for custom
        timestamp: Creation time in epoch milliseconds
        expires_at: Epoch seconds after which the record is invisible
        data: The stored payload (fusion result or custom data)
        record_metadata: Processing or client metadata
    """

    __tablename__ = "history_records"
    __table_args__ = (
        UniqueConstraint("partition_key", "sort_key", name="uq_history_key"),
        Index("ix_history_records_source_timestamp", "source", "timestamp"),
    )

    partition_key: Mapped[str] = mapped_column(String(128), nullable=False)
    sort_key: Mapped[str] = mapped_column(String(128), nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    character_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True, index=True
    )
    data: Mapped[Any] = mapped_column(JSON, nullable=False)
    record_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<HistoryRecord(id={self.id}, source={self.source}, "
            f"partition_key={self.partition_key!r})>"
        )
