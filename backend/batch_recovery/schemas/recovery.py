"""Recovery Schemas — Pydantic models with field-level validation for the recovery API.

Invariants:
    - Request bodies map 1:1 onto RecoveryOptions (to_options)
    - Responses are camelCase on the wire, built only from core result objects
    - preferredSource accepts local|server, conflictResolution accepts auto|manual

Design Decisions:
    - Literal types over str enums for request fields: Pydantic handles validation natively
    - from_result classmethods keep conversion next to the schema, routes stay thin
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from batch_recovery.core.batch_state import BatchState
from batch_recovery.core.domain_types import (
    DEFAULT_COMPONENTS, ConflictResolutionMode, RecoverySource,
)
from batch_recovery.core.recovery_config import RecoveryOptions
from batch_recovery.core.recovery_result import (
    ConflictInfo, ProgressiveRecoveryResult, RecoveryResult,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# --- Requests -----------------------------------------------------------------

class RecoveryRequest(_CamelModel):
    """Body of POST /batches/{batch_id}/recovery."""
    session_id: str | None = Field(None, max_length=128)
    user_id: str | None = Field(None, max_length=128)
    timeout_ms: int | None = Field(None, ge=0)
    preferred_source: Literal["local", "server"] = "local"
    allow_partial_recovery: bool = False
    conflict_resolution: Literal["auto", "manual"] | None = None
    fallback_to_progressive: bool = False

    def to_options(self) -> RecoveryOptions:
        return RecoveryOptions(
            session_id=self.session_id,
            user_id=self.user_id,
            timeout_ms=self.timeout_ms,
            preferred_source=RecoverySource(self.preferred_source),
            allow_partial_recovery=self.allow_partial_recovery,
            conflict_resolution=(
                ConflictResolutionMode(self.conflict_resolution)
                if self.conflict_resolution else None
            ),
        )


class ProgressiveRecoveryRequest(_CamelModel):
    """Body of POST /batches/{batch_id}/recovery/progressive."""
    components: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COMPONENTS), min_length=1,
    )
    session_id: str | None = Field(None, max_length=128)


# --- Responses ----------------------------------------------------------------

def _state(state: BatchState | None) -> dict | None:
    if state is None:
        return None
    return state.model_dump(mode="json", by_alias=True)


class ConflictResponse(_CamelModel):
    type: str
    local_state: dict
    remote_state: dict
    conflict_fields: list[str]
    resolution_options: list[dict[str, str]]

    @classmethod
    def from_conflict(cls, conflict: ConflictInfo) -> "ConflictResponse":
        return cls(
            type=conflict.type,
            local_state=_state(conflict.local_state),
            remote_state=_state(conflict.remote_state),
            conflict_fields=list(conflict.conflict_fields),
            resolution_options=[
                {"id": o.id, "action": o.action.value}
                for o in conflict.resolution_options
            ],
        )


class ProgressiveRecoveryResponse(_CamelModel):
    recovered: dict[str, Any]
    failed: list[str]
    warnings: list[str]

    @classmethod
    def from_result(
        cls, result: ProgressiveRecoveryResult,
    ) -> "ProgressiveRecoveryResponse":
        return cls(
            recovered=dict(result.recovered),
            failed=list(result.failed),
            warnings=list(result.warnings),
        )


class RecoveryResultResponse(_CamelModel):
    status: str
    restored_state: dict | None = None
    partial_data: dict | None = None
    metadata: dict[str, Any]
    recovered_items: list[str]
    failed_items: list[str]
    warnings: list[str]
    conflict_details: ConflictResponse | None = None
    error_details: dict[str, Any] | None = None
    progressive: ProgressiveRecoveryResponse | None = None

    @classmethod
    def from_result(
        cls,
        result: RecoveryResult,
        progressive: ProgressiveRecoveryResult | None = None,
    ) -> "RecoveryResultResponse":
        return cls(
            status=result.status.value,
            restored_state=_state(result.restored_state),
            partial_data=_state(result.partial_data),
            metadata={
                "source": result.metadata.source,
                "durationMs": result.metadata.duration_ms,
            },
            recovered_items=list(result.recovered_items),
            failed_items=list(result.failed_items),
            warnings=list(result.warnings),
            conflict_details=(
                ConflictResponse.from_conflict(result.conflict_details)
                if result.conflict_details is not None else None
            ),
            error_details=(
                dict(result.error_details)
                if result.error_details is not None else None
            ),
            progressive=(
                ProgressiveRecoveryResponse.from_result(progressive)
                if progressive is not None else None
            ),
        )
