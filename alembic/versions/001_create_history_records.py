"""Create the history_records table.

Revision ID: 001_create_history_records
Revises:
Create Date: 2025-12-06

Fusion results and custom payloads share one append-only table, partitioned
logically by the partition_key prefix (FUSIONED# / CUSTOM#) and ordered by
sort_key within each partition.
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_create_history_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create history_records with its keyset and expiry indexes."""
    op.create_table(
        "history_records",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("partition_key", sa.String(length=128), nullable=False),
        sa.Column("sort_key", sa.String(length=128), nullable=False),
        sa.Column("source", sa.String(length=16), nullable=False),
        sa.Column("character_id", sa.String(length=32), nullable=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.UniqueConstraint("partition_key", "sort_key", name="uq_history_key"),
    )
    op.create_index(
        "ix_history_records_source_timestamp",
        "history_records",
        ["source", "timestamp"],
    )
    op.create_index(
        "ix_history_records_expires_at",
        "history_records",
        ["expires_at"],
    )


def downgrade() -> None:
    """Drop history_records."""
    op.drop_index("ix_history_records_expires_at", table_name="history_records")
    op.drop_index("ix_history_records_source_timestamp", table_name="history_records")
    op.drop_table("history_records")
