"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - BatchId, SessionId, UserId wrap str — core and service signatures take these, never bare str
    - BatchStatus is a closed set: any other value makes a BatchState invalid
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (remote API and HTTP surface are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

BatchId = NewType("BatchId", str)
SessionId = NewType("SessionId", str)
UserId = NewType("UserId", str)


# ─── Enums ───────────────────────────────────────────────────────

class BatchStatus(str, Enum):
    """Batch lifecycle states as reported by every store."""
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class RecoveryStatus(str, Enum):
    """Outcome of one recovery attempt."""
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"
    TIMEOUT = "timeout"
    CONFLICT = "conflict"


class RecoverySource(str, Enum):
    """Stores consulted during recovery, in default priority order."""
    LOCAL = "local"
    DURABLE = "durable"
    SERVER = "server"
    RECONCILED = "reconciled"


# Reported as failed_items when every source came back empty
ALL_SOURCES: tuple[str, ...] = (
    RecoverySource.LOCAL.value,
    RecoverySource.DURABLE.value,
    RecoverySource.SERVER.value,
)


class ConflictResolutionMode(str, Enum):
    """How the coordinator handles a local/server disagreement."""
    AUTO = "auto"
    MANUAL = "manual"


class ResolutionAction(str, Enum):
    """Actions offered to a caller for an unresolved conflict."""
    USE_REMOTE = "use_remote"
    USE_LOCAL = "use_local"
    MERGE = "merge"
    MANUAL = "manual"


class RecoveryComponent(str, Enum):
    """Sub-resources recoverable independently by progressive recovery."""
    RESUMES = "resumes"
    ANALYSIS = "analysis"
    METADATA = "metadata"


DEFAULT_COMPONENTS: tuple[str, ...] = tuple(c.value for c in RecoveryComponent)
