"""Batch snapshots — durable local tier of the snapshot store.

Revision ID: 001_batch_snapshots
Revises: None
Create Date: 2026-10-18

One row per batch holding the latest captured snapshot: envelope columns
(version, captured_at, session/user ownership) plus JSON state and metadata.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_batch_snapshots"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "batch_snapshots",
        sa.Column("batch_id", sa.String(128), primary_key=True),
        sa.Column("session_id", sa.String(128), nullable=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("version", sa.String(20), nullable=False),
        sa.Column("captured_at", sa.BigInteger, nullable=False),
        sa.Column("state", sa.JSON, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("compressed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_batch_snapshots_session_id", "batch_snapshots", ["session_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_batch_snapshots_session_id", table_name="batch_snapshots")
    op.drop_table("batch_snapshots")
