"""Recovery Configuration — process-level config and per-call options for recovery.

Invariants:
    - Both records are frozen; a call never changes the coordinator's config
    - timeout values are milliseconds
    - A per-call timeout below min_timeout_ms demands an immediate timeout result

Design Decisions:
    - Plain dataclasses in core: config.py (pydantic-settings) builds RecoveryConfig
      from the environment, so core stays free of settings machinery
    - retry_attempts / retry_delay_ms govern the remote API client, not the coordinator
"""

from dataclasses import dataclass

from batch_recovery.core.domain_types import (
    ConflictResolutionMode, RecoverySource, SessionId, UserId,
)


@dataclass(frozen=True)
class RecoveryConfig:
    timeout_ms: int = 30_000
    retry_attempts: int = 3
    retry_delay_ms: int = 1_000
    enable_progressive_recovery: bool = True
    enable_conflict_resolution: bool = True
    min_timeout_ms: int = 5_000


DEFAULT_RECOVERY_CONFIG = RecoveryConfig()


@dataclass(frozen=True)
class RecoveryOptions:
    """Per-call options for recover_batch_state."""
    session_id: SessionId | None = None
    user_id: UserId | None = None
    timeout_ms: int | None = None
    preferred_source: RecoverySource = RecoverySource.LOCAL
    allow_partial_recovery: bool = False
    conflict_resolution: ConflictResolutionMode | None = None

    @property
    def has_server_context(self) -> bool:
        return bool(self.session_id or self.user_id)
