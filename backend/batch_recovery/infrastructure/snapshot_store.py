"""Snapshot Stores — local SnapshotStore implementations (fast cache + durable SQL tier).

Invariants:
    - restore() returns a snapshot (object or camelCase record) or None; storage
      failures propagate to LocalRecovery, which turns them into "source unavailable"
    - Cache entries expire after ttl_seconds
    - TieredSnapshotStore reads cache first, then durable; durable hits populate the cache

Design Decisions:
    - Read-only against the durable tier: writing snapshots belongs to the capturing client
    - Cache keyed by batch_id under a threading.Lock (shared across requests)
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from batch_recovery.core.domain_types import BatchId, RecoverySource
from batch_recovery.core.snapshot import PersistedSnapshot
from batch_recovery.infrastructure.database import DatabaseSessionManager
from batch_recovery.models.batch_snapshot import BatchSnapshot

logger = logging.getLogger(__name__)

StoredSnapshot = PersistedSnapshot | Mapping[str, Any]


class InMemorySnapshotCache:
    """Fast local tier with per-entry TTL."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, StoredSnapshot]] = {}

    def put(self, batch_id: BatchId, snapshot: StoredSnapshot) -> None:
        """Store snapshot for batch_id, dropping every entry that has already expired."""
        with self._lock:
            now = self._clock()
            expired = [
                key for key, (expires_at, _) in self._entries.items()
                if expires_at <= now
            ]
            for key in expired:
                del self._entries[key]
            self._entries[batch_id] = (now + self.ttl_seconds, snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def evict(self, batch_id: BatchId) -> None:
        with self._lock:
            self._entries.pop(batch_id, None)

    async def restore(self, batch_id: BatchId) -> StoredSnapshot | None:
        with self._lock:
            entry = self._entries.get(batch_id)
            if entry is None:
                return None
            expires_at, snapshot = entry
            if expires_at <= self._clock():
                del self._entries[batch_id]
                return None
            return snapshot


class SqlSnapshotStore:
    """Durable tier — reads the batch_snapshots table."""

    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def restore(self, batch_id: BatchId) -> dict | None:
        async with self.db.session() as session:
            row = await session.get(BatchSnapshot, batch_id)
            return row.to_record() if row is not None else None


class TieredSnapshotStore:
    """Cache first, durable second."""

    def __init__(self, cache: InMemorySnapshotCache, durable: SqlSnapshotStore):
        self.cache = cache
        self.durable = durable

    async def restore(self, batch_id: BatchId) -> StoredSnapshot | None:
        cached = await self.cache.restore(batch_id)
        if cached is not None:
            logger.debug(
                "Snapshot cache hit",
                extra={"batch_id": batch_id, "source": RecoverySource.LOCAL.value},
            )
            return cached
        stored = await self.durable.restore(batch_id)
        if stored is not None:
            logger.debug(
                "Snapshot loaded from durable store",
                extra={"batch_id": batch_id, "source": RecoverySource.DURABLE.value},
            )
            self.cache.put(batch_id, stored)
        return stored
