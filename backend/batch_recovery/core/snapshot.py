"""Persisted Snapshot — versioned envelope around a BatchState, as read back from a store.

Invariants:
    - snapshot_from_record never returns a snapshot for a different batch
    - A snapshot is compatible only when its major version equals STORAGE_VERSION's
    - Checksums are verified only when the snapshot declares a known algorithm;
      otherwise they are opaque collaborator data
    - Pure functions, no IO

Design Decisions:
    - Envelope as frozen dataclass, payload as BatchState: the envelope is produced
      by the store, only the payload is interpreted by recovery
    - Record keys are camelCase (snapshot wire format shared with the write side)
"""

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import ValidationError

from batch_recovery.core.batch_state import BatchState, STATE_SCHEMA_VERSION
from batch_recovery.core.domain_types import BatchId, SessionId, UserId
from batch_recovery.core.errors import (
    ErrorContext, SnapshotIntegrityError, SnapshotVersionError,
)

STORAGE_VERSION = STATE_SCHEMA_VERSION
CHECKSUM_ALGORITHM = "sha256"


@dataclass(frozen=True)
class SnapshotMetadata:
    """Integrity and provenance data written alongside the state."""
    checksum: str | None = None
    checksum_algorithm: str | None = None
    sync_status: str = "unknown"
    resume_count: int | None = None
    last_activity: int | None = None
    user_agent: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class PersistedSnapshot:
    """A captured BatchState plus its envelope."""
    version: str
    timestamp: int
    batch_id: BatchId
    state: BatchState
    session_id: SessionId | None = None
    user_id: UserId | None = None
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)
    compressed: bool = False


def _major(version: str) -> str:
    return version.split(".", 1)[0]


def check_version(version: str, batch_id: BatchId | None = None) -> None:
    """Raise SnapshotVersionError unless version shares STORAGE_VERSION's major."""
    if not version or _major(version) != _major(STORAGE_VERSION):
        raise SnapshotVersionError(
            version or "<missing>", STORAGE_VERSION,
            ErrorContext(batch_id=batch_id),
        )


def compute_checksum(state: BatchState) -> str:
    """SHA-256 over the canonical JSON form of a state."""
    payload = json.dumps(
        state.model_dump(mode="json", by_alias=True),
        sort_keys=True, separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def verify_checksum(snapshot: PersistedSnapshot) -> bool:
    """True when the checksum matches, or when it is not ours to verify."""
    meta = snapshot.metadata
    if meta.checksum_algorithm != CHECKSUM_ALGORITHM or not meta.checksum:
        return True
    return meta.checksum == compute_checksum(snapshot.state)


def _parse_metadata(raw: object) -> SnapshotMetadata:
    if not isinstance(raw, Mapping):
        return SnapshotMetadata()
    return SnapshotMetadata(
        checksum=raw.get("checksum"),
        checksum_algorithm=raw.get("checksumAlgorithm"),
        sync_status=raw.get("syncStatus", "unknown"),
        resume_count=raw.get("resumeCount"),
        last_activity=raw.get("lastActivity"),
        user_agent=raw.get("userAgent"),
        url=raw.get("url"),
    )


def snapshot_from_record(
    record: Mapping, expected_batch_id: BatchId,
) -> PersistedSnapshot:
    """Parse a raw stored record into a validated PersistedSnapshot.

    Raises SnapshotIntegrityError for malformed envelopes or states, and
    SnapshotVersionError for incompatible schema versions.
    """
    ctx = ErrorContext(batch_id=expected_batch_id, source="local")
    raw_state = record.get("state")
    if not isinstance(raw_state, Mapping):
        raise SnapshotIntegrityError("Snapshot has no state payload", ctx)
    try:
        state = BatchState.model_validate(raw_state)
    except ValidationError as e:
        raise SnapshotIntegrityError(
            f"Snapshot state failed validation ({e.error_count()} errors)", ctx,
        ) from e

    snapshot = PersistedSnapshot(
        version=str(record.get("version", "")),
        timestamp=int(record.get("timestamp") or 0),
        batch_id=str(record.get("batchId", "")),
        session_id=record.get("sessionId"),
        user_id=record.get("userId"),
        state=state,
        metadata=_parse_metadata(record.get("metadata")),
        compressed=bool(record.get("compressed", False)),
    )
    return validate_snapshot(snapshot, expected_batch_id)


def validate_snapshot(
    snapshot: PersistedSnapshot, expected_batch_id: BatchId,
) -> PersistedSnapshot:
    """Check version, ownership and checksum. Returns the snapshot unchanged."""
    ctx = ErrorContext(batch_id=expected_batch_id, source="local")
    check_version(snapshot.version, expected_batch_id)
    if snapshot.batch_id != expected_batch_id:
        raise SnapshotIntegrityError(
            f"Snapshot belongs to batch '{snapshot.batch_id}'", ctx,
        )
    owner = snapshot.state.current_batch_id
    if owner is not None and owner != expected_batch_id:
        raise SnapshotIntegrityError(
            f"Snapshot state references batch '{owner}'", ctx,
        )
    if not verify_checksum(snapshot):
        raise SnapshotIntegrityError("Snapshot checksum mismatch", ctx)
    return snapshot
