"""In-Flight Recoveries — the synchronized batch_id → pending recovery table.

Invariants:
    - At most one entry per batch_id
    - Check-and-insert (get_or_create) and removal are each one atomic step
    - The lock is never held across an await (all methods are synchronous)
    - discard() only removes the entry it was given, never a newer one

Design Decisions:
    - Entries are concurrent.futures.Future, not asyncio.Task: a future is bound to
      no event loop, so callers running on other threads' loops can join it
      through asyncio.wrap_future
    - threading.Lock over asyncio.Lock for the same reason
    - Owned by one coordinator instance and injectable (no module-level singleton)
"""

import threading
from concurrent.futures import Future

from batch_recovery.core.domain_types import BatchId


class InFlightRecoveries:
    """Mutual-exclusion table of pending recovery outcomes keyed by batch id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[BatchId, Future] = {}

    def get_or_create(self, batch_id: BatchId) -> tuple[Future, bool]:
        """Return (future, created). created is False when joining an existing entry."""
        with self._lock:
            existing = self._pending.get(batch_id)
            if existing is not None:
                return existing, False
            future: Future = Future()
            self._pending[batch_id] = future
            return future, True

    def discard(self, batch_id: BatchId, future: Future) -> None:
        with self._lock:
            if self._pending.get(batch_id) is future:
                del self._pending[batch_id]

    def pop(self, batch_id: BatchId) -> Future | None:
        with self._lock:
            return self._pending.pop(batch_id, None)

    def active(self) -> frozenset[BatchId]:
        with self._lock:
            return frozenset(self._pending)
