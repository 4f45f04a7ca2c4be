"""Error Hierarchy — typed, categorized exceptions for all recovery failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Source and component errors never escape the coordinator or progressive recovery:
      they are converted into result fields (failed_items, warnings, error_details)
    - to_response() produces the REST envelope, also reused as RecoveryResult.error_details

Design Decisions:
    - Single hierarchy with RecoveryServiceError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    SOURCE_UNAVAILABLE = "source_unavailable"
    INTEGRITY = "integrity"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    batch_id: str | None = None
    source: str | None = None
    component: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class RecoveryServiceError(Exception):
    """Base exception for all batch recovery errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "batch_id": self.context.batch_id,
                    "source": self.context.source,
                    "component": self.context.component,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Source / Snapshot Errors ───────────────────────────────────

class SnapshotIntegrityError(RecoveryServiceError):
    """Persisted snapshot is malformed or belongs to another batch."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SNAPSHOT_INTEGRITY", ErrorCategory.INTEGRITY,
            ErrorSeverity.WARNING, context, 422,
        )


class SnapshotVersionError(RecoveryServiceError):
    """Persisted snapshot schema version is incompatible."""
    def __init__(
        self, found: str, expected: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Snapshot version {found} is incompatible with {expected}",
            "SNAPSHOT_VERSION_MISMATCH", ErrorCategory.INTEGRITY,
            ErrorSeverity.WARNING, context, 422,
        )
        self.found = found
        self.expected = expected


class SourceUnavailableError(RecoveryServiceError):
    """A single source failed or returned nothing usable."""
    def __init__(self, source: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.source = source
        super().__init__(
            f"Source '{source}' unavailable: {reason}",
            "SOURCE_UNAVAILABLE", ErrorCategory.SOURCE_UNAVAILABLE,
            ErrorSeverity.WARNING, ctx, 503,
        )
        self.source = source


class RemoteApiError(RecoveryServiceError):
    """Remote batch API call failed (non-ok status or transport failure)."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Remote API error: {message}",
            "REMOTE_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.status_code = status_code


class UnknownComponentError(RecoveryServiceError):
    """Progressive recovery was asked for a component it cannot fetch."""
    def __init__(self, component: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.component = component
        super().__init__(
            f"Unknown recovery component '{component}'",
            "UNKNOWN_COMPONENT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ctx, 400,
        )


# ─── Terminal Outcomes ──────────────────────────────────────────

class AllSourcesExhaustedError(RecoveryServiceError):
    """No source yielded a usable state."""
    def __init__(self, attempted: list[str], context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.debug_info = {"attempted": attempted}
        super().__init__(
            "All recovery sources failed",
            "ALL_SOURCES_EXHAUSTED", ErrorCategory.SOURCE_UNAVAILABLE,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.attempted = attempted


class RecoveryTimeoutError(RecoveryServiceError):
    """Recovery exceeded its time budget."""
    def __init__(self, timeout_ms: int, context: ErrorContext | None = None):
        super().__init__(
            f"Recovery exceeded {timeout_ms}ms timeout",
            "RECOVERY_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 504,
        )
        self.timeout_ms = timeout_ms


# ─── Infrastructure Errors ──────────────────────────────────────

class DatabaseError(RecoveryServiceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
