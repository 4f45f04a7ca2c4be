"""BatchSnapshot ORM — durable local copy of the last captured state of each batch.

Invariants:
    - batch_id is the primary key: one (latest) snapshot per batch
    - state and snapshot_metadata are stored as JSON in the camelCase snapshot wire format
    - captured_at is epoch milliseconds, as written by the capturing client

Design Decisions:
    - JSON columns over normalized tables: the recovery core treats state as an opaque,
      versioned record and validates it on read
    - snapshot_metadata attribute maps to the "metadata" column
      (`metadata` is reserved on declarative classes)
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from batch_recovery.db.base import Base


class BatchSnapshot(Base):
    """Latest persisted snapshot of one batch."""
    __tablename__ = "batch_snapshots"

    batch_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    session_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, index=True,
    )
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    version: Mapped[str] = mapped_column(String(20), nullable=False)
    captured_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    state: Mapped[dict] = mapped_column(JSON, nullable=False)
    snapshot_metadata: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    compressed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_record(self) -> dict:
        """Snapshot record in the camelCase wire format read by recovery."""
        return {
            "version": self.version,
            "timestamp": self.captured_at,
            "batchId": self.batch_id,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "state": self.state,
            "metadata": self.snapshot_metadata,
            "compressed": self.compressed,
        }
