"""Conflict Detection & Resolution — pure comparison and merge of two batch views.

Invariants:
    - Only fields listed in COMPARABLE_FIELDS and reported by BOTH states are compared
    - Comparison is shallow value equality, never a deep structural diff
    - No differing fields → None (never an empty ConflictInfo)
    - auto_resolve_conflicts starts from the local state and only touches conflicting fields
    - A non-null local error is never replaced by a null remote error

Design Decisions:
    - Per-field rules as a table (FIELD_RULES): adding a rule is data, not a new branch
    - Fields without a rule keep the local value (local evidence is the conservative default)
"""

from enum import Enum

from batch_recovery.core.batch_state import BatchState, comparable_fields
from batch_recovery.core.domain_types import BatchStatus
from batch_recovery.core.recovery_result import ConflictInfo


class ResolutionRule(str, Enum):
    """How auto-resolution settles one conflicting field."""
    PREFER_INCOMING = "prefer_incoming"
    PREFER_READY = "prefer_ready"
    KEEP_LOCAL_ERROR = "keep_local_error"
    KEEP_LOCAL = "keep_local"


FIELD_RULES: dict[str, ResolutionRule] = {
    "resume_count": ResolutionRule.PREFER_INCOMING,
    "last_validated": ResolutionRule.PREFER_INCOMING,
    "status": ResolutionRule.PREFER_READY,
    "error": ResolutionRule.KEEP_LOCAL_ERROR,
}
DEFAULT_RULE = ResolutionRule.KEEP_LOCAL


def detect_conflicts(
    existing: BatchState, incoming: BatchState, version: str | None = None,
) -> ConflictInfo | None:
    """Compare two states field by field. Pure, no IO."""
    reported = existing.model_fields_set & incoming.model_fields_set
    conflict_fields = tuple(
        name for name in comparable_fields(version)
        if name in reported
        and getattr(existing, name) != getattr(incoming, name)
    )
    if not conflict_fields:
        return None
    return ConflictInfo(
        local_state=existing,
        remote_state=incoming,
        conflict_fields=conflict_fields,
    )


def _resolve_field(rule: ResolutionRule, local: object, remote: object) -> object:
    if rule is ResolutionRule.PREFER_INCOMING:
        return remote
    if rule is ResolutionRule.PREFER_READY:
        return BatchStatus.READY if remote == BatchStatus.READY else local
    if rule is ResolutionRule.KEEP_LOCAL_ERROR:
        return local if local is not None else remote
    return local


def auto_resolve_conflicts(
    conflict_info: ConflictInfo, remote_data: BatchState,
) -> BatchState:
    """Merge remote values into the local state per FIELD_RULES. Pure, no IO."""
    local = conflict_info.local_state
    updates = {
        name: _resolve_field(
            FIELD_RULES.get(name, DEFAULT_RULE),
            getattr(local, name),
            getattr(remote_data, name),
        )
        for name in conflict_info.conflict_fields
    }
    return local.model_copy(update=updates)
