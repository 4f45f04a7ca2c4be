"""Source Recovery Strategies — read one batch state back from a single source.

Invariants:
    - recover() returns a validated BatchState or None; it never raises for source failures
    - Local: restore → validate envelope (version, ownership, checksum) → unwrap state
    - Server: GET /batches/{id}/validate with session/user context → parse BatchState
    - Non-ok responses raise RemoteApiError, unparseable payloads SourceUnavailableError;
      both are logged and swallowed at the source boundary
    - Every failure is logged as a warning ("Storage recovery failed" / "Server recovery failed")

Design Decisions:
    - One class per source with an injected collaborator: usable and testable without
      the coordinator
    - Broad except at the source boundary: collaborators are opaque and any failure
      means "source unavailable", which the coordinator handles by falling through
"""

import logging
from urllib.parse import quote, urlencode

from batch_recovery.core.batch_state import BatchState
from batch_recovery.core.domain_types import BatchId, RecoverySource, SessionId, UserId
from batch_recovery.core.errors import (
    ErrorContext, RemoteApiError, SourceUnavailableError,
)
from batch_recovery.core.repository_protocols import BatchApi, SnapshotStore
from batch_recovery.core.snapshot import (
    PersistedSnapshot, snapshot_from_record, validate_snapshot,
)

logger = logging.getLogger(__name__)


def build_path(path: str, **params: object) -> str:
    """Append non-None params as a query string (camelCase keys as given)."""
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{path}?{query}" if query else path


def validation_path(batch_id: BatchId, **params: object) -> str:
    return build_path(f"/batches/{quote(batch_id, safe='')}/validate", **params)


class LocalRecovery:
    """Recover from the local snapshot store (cache and durable tiers)."""

    source = RecoverySource.LOCAL

    def __init__(self, store: SnapshotStore):
        self.store = store

    async def recover(self, batch_id: BatchId) -> BatchState | None:
        try:
            stored = await self.store.restore(batch_id)
            if stored is None:
                logger.debug(
                    "No local snapshot", extra={"batch_id": batch_id},
                )
                return None
            if isinstance(stored, PersistedSnapshot):
                snapshot = validate_snapshot(stored, batch_id)
            else:
                snapshot = snapshot_from_record(stored, batch_id)
        except Exception as e:
            logger.warning(
                "Storage recovery failed",
                extra={
                    "error": str(e),
                    "batch_id": batch_id,
                    "source": self.source.value,
                    "error_code": getattr(e, "code", None),
                },
            )
            return None
        return snapshot.state


class ServerRecovery:
    """Recover from the remote server of record."""

    source = RecoverySource.SERVER

    def __init__(self, api: BatchApi):
        self.api = api

    async def recover(
        self,
        batch_id: BatchId,
        session_id: SessionId | None = None,
        user_id: UserId | None = None,
    ) -> BatchState | None:
        path = validation_path(batch_id, sessionId=session_id, userId=user_id)
        try:
            response = await self.api.request("GET", path)
            if not response.ok:
                raise RemoteApiError(
                    f"status {response.status_code}",
                    status_code=response.status_code,
                    context=ErrorContext(batch_id=batch_id, source="server"),
                )
            return self._parse(batch_id, response)
        except Exception as e:
            logger.warning(
                "Server recovery failed",
                extra={
                    "error": str(e),
                    "batch_id": batch_id,
                    "source": self.source.value,
                    "error_code": getattr(e, "code", None),
                },
            )
            return None

    def _parse(self, batch_id: BatchId, response) -> BatchState:
        try:
            return BatchState.model_validate(response.json())
        except ValueError as e:
            raise SourceUnavailableError(
                self.source.value, f"malformed response: {e}",
                ErrorContext(batch_id=batch_id),
            ) from e
