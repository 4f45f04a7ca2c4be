"""Batch Recovery Manager — facade over whole-state and progressive recovery.

Invariants:
    - One manager per process, owned by the FastAPI app (app.state), never a module global
    - recover_with_fallback runs progressive recovery only when whole-state recovery FAILED
      (timeout, conflict and partial are answers, not failures)

Design Decisions:
    - Facade keeps routes thin: routes depend on one object, tests override one dependency
    - build_recovery_manager wires the default object graph from collaborators + config
"""

import logging
from collections.abc import Iterable

from batch_recovery.core.domain_types import (
    DEFAULT_COMPONENTS, BatchId, RecoveryStatus, SessionId,
)
from batch_recovery.core.recovery_config import (
    DEFAULT_RECOVERY_CONFIG, RecoveryConfig, RecoveryOptions,
)
from batch_recovery.core.recovery_result import (
    ProgressiveRecoveryResult, RecoveryResult,
)
from batch_recovery.core.repository_protocols import BatchApi, SnapshotStore
from batch_recovery.services.progressive_recovery import ProgressiveRecovery
from batch_recovery.services.recovery_coordinator import RecoveryCoordinator
from batch_recovery.services.source_recovery import LocalRecovery, ServerRecovery

logger = logging.getLogger(__name__)


class BatchRecoveryManager:
    """Single entry point for every recovery operation."""

    def __init__(
        self, coordinator: RecoveryCoordinator, progressive: ProgressiveRecovery,
    ):
        self.coordinator = coordinator
        self.progressive = progressive

    async def recover_batch_state(
        self, batch_id: BatchId, options: RecoveryOptions | None = None,
    ) -> RecoveryResult:
        return await self.coordinator.recover_batch_state(batch_id, options)

    async def progressive_recovery(
        self,
        batch_id: BatchId,
        components: Iterable[str] = DEFAULT_COMPONENTS,
        session_id: SessionId | None = None,
    ) -> ProgressiveRecoveryResult:
        return await self.progressive.recover(batch_id, components, session_id)

    def cancel_recovery(self, batch_id: BatchId) -> bool:
        return self.coordinator.cancel_recovery(batch_id)

    def get_active_recoveries(self) -> frozenset[BatchId]:
        return self.coordinator.get_active_recoveries()

    async def recover_with_fallback(
        self,
        batch_id: BatchId,
        options: RecoveryOptions | None = None,
        components: Iterable[str] = DEFAULT_COMPONENTS,
    ) -> tuple[RecoveryResult, ProgressiveRecoveryResult | None]:
        """Whole-state recovery, salvaging components if it failed."""
        options = options or RecoveryOptions()
        result = await self.recover_batch_state(batch_id, options)
        if result.status is not RecoveryStatus.FAILED:
            return result, None
        logger.info(
            "Falling back to progressive recovery",
            extra={"batch_id": batch_id},
        )
        salvaged = await self.progressive_recovery(
            batch_id, components, options.session_id,
        )
        return result, salvaged


def build_recovery_manager(
    store: SnapshotStore,
    api: BatchApi,
    config: RecoveryConfig = DEFAULT_RECOVERY_CONFIG,
) -> BatchRecoveryManager:
    """Wire coordinator + progressive recovery over the given collaborators."""
    coordinator = RecoveryCoordinator(
        LocalRecovery(store), ServerRecovery(api), config,
    )
    return BatchRecoveryManager(coordinator, ProgressiveRecovery(api, config))
