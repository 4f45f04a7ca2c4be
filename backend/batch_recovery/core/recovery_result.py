"""Recovery Results — immutable outcome records for recovery attempts.

Invariants:
    - RecoveryResult, ConflictInfo and ProgressiveRecoveryResult are frozen; sequences are tuples
    - ConflictInfo.conflict_fields is never empty (an empty diff is None, not a ConflictInfo)
    - Every ConflictInfo offers the same four resolution options
    - Builders are the only place results are assembled, so status and payload fields agree

Design Decisions:
    - Frozen dataclasses: results are shared by every caller joined on one recovery,
      so nothing may mutate them after construction
    - error_details reuses the error hierarchy's REST envelope (one error shape everywhere)
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from batch_recovery.core.batch_state import BatchState
from batch_recovery.core.domain_types import (
    ALL_SOURCES, RecoverySource, RecoveryStatus, ResolutionAction,
)
from batch_recovery.core.errors import RecoveryServiceError


@dataclass(frozen=True)
class ResolutionOption:
    """One way a caller may settle a conflict."""
    id: str
    action: ResolutionAction


RESOLUTION_OPTIONS: tuple[ResolutionOption, ...] = (
    ResolutionOption("use_newer", ResolutionAction.USE_REMOTE),
    ResolutionOption("use_existing", ResolutionAction.USE_LOCAL),
    ResolutionOption("merge_safe", ResolutionAction.MERGE),
    ResolutionOption("manual_review", ResolutionAction.MANUAL),
)


@dataclass(frozen=True)
class ConflictInfo:
    """Disagreement between the local and remote views of a batch."""
    local_state: BatchState
    remote_state: BatchState
    conflict_fields: tuple[str, ...]
    resolution_options: tuple[ResolutionOption, ...] = RESOLUTION_OPTIONS
    type: str = "data"

    def __post_init__(self):
        if not self.conflict_fields:
            raise ValueError("ConflictInfo requires at least one conflicting field")


@dataclass(frozen=True)
class RecoveryMetadata:
    source: str
    duration_ms: float


@dataclass(frozen=True)
class RecoveryResult:
    """Outcome of one recover_batch_state attempt."""
    status: RecoveryStatus
    metadata: RecoveryMetadata
    restored_state: BatchState | None = None
    partial_data: BatchState | None = None
    recovered_items: tuple[str, ...] = ()
    failed_items: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    conflict_details: ConflictInfo | None = None
    error_details: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class ProgressiveRecoveryResult:
    """Per-component outcome of progressive recovery."""
    recovered: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    failed: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


# ─── Builders ────────────────────────────────────────────────────

def _meta(source: str, duration_ms: float) -> RecoveryMetadata:
    return RecoveryMetadata(source=source, duration_ms=duration_ms)


def _details(error: RecoveryServiceError) -> Mapping[str, Any]:
    return MappingProxyType(error.to_response()["error"])


def success_result(
    state: BatchState,
    source: str,
    duration_ms: float,
    recovered_items: Iterable[str],
    warnings: Iterable[str] = (),
) -> RecoveryResult:
    return RecoveryResult(
        status=RecoveryStatus.SUCCESS,
        metadata=_meta(source, duration_ms),
        restored_state=state,
        recovered_items=tuple(recovered_items),
        warnings=tuple(warnings),
    )


def partial_result(
    state: BatchState, source: str, duration_ms: float,
) -> RecoveryResult:
    return RecoveryResult(
        status=RecoveryStatus.PARTIAL,
        metadata=_meta(source, duration_ms),
        partial_data=state,
        recovered_items=(source,),
        warnings=(f"Recovered state from {source} is incomplete",),
    )


def conflict_result(
    conflict: ConflictInfo, source: str, duration_ms: float,
) -> RecoveryResult:
    return RecoveryResult(
        status=RecoveryStatus.CONFLICT,
        metadata=_meta(source, duration_ms),
        recovered_items=(RecoverySource.LOCAL.value, RecoverySource.SERVER.value),
        warnings=(
            f"Manual resolution required for: {', '.join(conflict.conflict_fields)}",
        ),
        conflict_details=conflict,
    )


def failed_result(
    error: RecoveryServiceError, source: str, duration_ms: float,
) -> RecoveryResult:
    return RecoveryResult(
        status=RecoveryStatus.FAILED,
        metadata=_meta(source, duration_ms),
        failed_items=ALL_SOURCES,
        error_details=_details(error),
    )


def timeout_result(
    error: RecoveryServiceError, source: str, duration_ms: float,
) -> RecoveryResult:
    return RecoveryResult(
        status=RecoveryStatus.TIMEOUT,
        metadata=_meta(source, duration_ms),
        warnings=("Recovery timeout exceeded",),
        error_details=_details(error),
    )
