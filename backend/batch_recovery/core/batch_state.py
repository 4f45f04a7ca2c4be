"""Batch State — the immutable, field-comparable view of one batch.

Invariants:
    - BatchState is frozen: recovery never mutates a state, it derives new ones
    - status is always a BatchStatus member (unknown statuses fail validation)
    - model_fields_set records which fields a source actually reported;
      conflict detection only compares fields reported by both sides
    - COMPARABLE_FIELDS is the explicit list of fields per state schema version

Design Decisions:
    - Pydantic over dataclass: the same model parses server payloads and snapshots,
      and fields_set distinguishes "reported as null" from "not reported"
    - camelCase aliases: the remote API and persisted snapshots speak camelCase,
      Python code uses field names (populate_by_name)
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from batch_recovery.core.domain_types import BatchStatus


STATE_SCHEMA_VERSION = "1.2.0"

# Versioned so a field added to BatchState is never silently skipped:
# a new schema version gets its own explicit entry.
COMPARABLE_FIELDS: dict[str, tuple[str, ...]] = {
    "1.2.0": (
        "current_batch_id", "session_id", "status", "resume_count",
        "is_loading", "error", "last_validated", "retry_count",
        "ownership", "security_flags", "can_claim", "is_orphaned",
        "server_validated",
    ),
}


class BatchError(BaseModel):
    """Error descriptor attached to a batch that failed."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel,
    )

    type: str = "unknown"
    message: str = ""
    code: str | None = None
    retryable: bool = False


class BatchState(BaseModel):
    """Logical state of a batch, as reported by any source."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel,
        extra="ignore",
    )

    current_batch_id: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "current_batch_id", "currentBatchId", "batchId",
        ),
        serialization_alias="currentBatchId",
    )
    session_id: str | None = None
    status: BatchStatus
    resume_count: int = Field(0, ge=0)
    is_loading: bool = False
    error: BatchError | None = None
    last_validated: datetime | None = None
    retry_count: int = Field(0, ge=0)
    ownership: dict[str, Any] | None = None
    security_flags: tuple[str, ...] = ()
    can_claim: bool = False
    is_orphaned: bool = False
    server_validated: bool = False


def comparable_fields(version: str | None = None) -> tuple[str, ...]:
    """Fields compared for conflicts under a schema version (latest if unknown)."""
    if version in COMPARABLE_FIELDS:
        return COMPARABLE_FIELDS[version]
    return COMPARABLE_FIELDS[STATE_SCHEMA_VERSION]


def is_degraded(state: BatchState) -> bool:
    """A parsed state with no items is structurally present but degraded."""
    return state.resume_count == 0
