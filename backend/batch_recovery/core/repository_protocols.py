"""Boundary Protocols — contracts between the recovery core and its collaborators.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - All IO (local stores, remote API) accessed through Protocol types
    - Implementations provided by infrastructure (or test fakes) via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes need no inheritance
    - Async in Protocol: boundary methods are async because implementations do IO;
      the services layer orchestrates the awaits around the pure core
"""

from collections.abc import Mapping
from typing import Any, Protocol

from batch_recovery.core.domain_types import BatchId
from batch_recovery.core.snapshot import PersistedSnapshot


class SnapshotStore(Protocol):
    """Local store contract — restore the last snapshot captured for a batch.

    Returns a PersistedSnapshot, a raw camelCase snapshot record, or None
    when nothing is stored. May raise on storage failure.
    """
    async def restore(
        self, batch_id: BatchId,
    ) -> PersistedSnapshot | Mapping[str, Any] | None: ...


class ApiResponse(Protocol):
    """Minimal response shape consumed from the remote batch API."""
    @property
    def ok(self) -> bool: ...

    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class BatchApi(Protocol):
    """Remote API contract — path includes any query string. May raise."""
    async def request(self, method: str, path: str) -> ApiResponse: ...
