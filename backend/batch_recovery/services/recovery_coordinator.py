"""Recovery Coordinator — deduplicated, time-bounded recovery of one batch's state.

Invariants:
    - At most one recovery pipeline per batch_id; concurrent callers join it and
      all receive the identical RecoveryResult object
    - Timeout below config.min_timeout_ms → immediate timeout result, no source touched
    - Otherwise the pipeline races a timer; on expiry the pipeline is abandoned (not cancelled)
    - The in-flight entry is removed when the recovery settles, whatever the outcome
    - cancel_recovery is advisory: it drops bookkeeping, awaiting callers still get the result
    - Public operations never raise for source failures; every outcome is a RecoveryResult

Design Decisions:
    - The pipeline task lives on the starting caller's loop; its outcome is published
      through a concurrent.futures.Future, so callers on other threads' loops join it
      with asyncio.wrap_future
    - Joiners await through asyncio.shield: one caller's cancellation never cancels
      the recovery for the others
    - asyncio.wait(timeout=) over wait_for: wait_for cancels the loser, the pipeline
      must only be abandoned
    - Both sources consulted only when a conflict_resolution mode is requested and
      enabled; otherwise first usable state wins
"""

import asyncio
import logging
import time
from concurrent.futures import Future

from batch_recovery.core.batch_state import BatchState, is_degraded
from batch_recovery.core.conflicts import auto_resolve_conflicts, detect_conflicts
from batch_recovery.core.domain_types import (
    BatchId, ConflictResolutionMode, RecoverySource,
)
from batch_recovery.core.errors import (
    AllSourcesExhaustedError, ErrorContext, RecoveryTimeoutError,
)
from batch_recovery.core.recovery_config import (
    DEFAULT_RECOVERY_CONFIG, RecoveryConfig, RecoveryOptions,
)
from batch_recovery.core.recovery_result import (
    RecoveryResult, conflict_result, failed_result, partial_result,
    success_result, timeout_result,
)
from batch_recovery.services.in_flight import InFlightRecoveries
from batch_recovery.services.source_recovery import LocalRecovery, ServerRecovery

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _log_abandoned(task: asyncio.Task) -> None:
    """Retrieve the outcome of a pipeline that lost the race against the timer."""
    if task.cancelled():
        return
    exc = task.exception()
    logger.debug(
        "Abandoned recovery pipeline finished",
        extra={"error_code": type(exc).__name__ if exc else None},
    )


class RecoveryCoordinator:
    """Entry point for whole-state batch recovery."""

    def __init__(
        self,
        local: LocalRecovery,
        server: ServerRecovery,
        config: RecoveryConfig = DEFAULT_RECOVERY_CONFIG,
        in_flight: InFlightRecoveries | None = None,
    ):
        self.local = local
        self.server = server
        self.config = config
        self._in_flight = in_flight if in_flight is not None else InFlightRecoveries()
        self._pipelines: set[asyncio.Task] = set()

    async def recover_batch_state(
        self, batch_id: BatchId, options: RecoveryOptions | None = None,
    ) -> RecoveryResult:
        """Recover a batch, joining any recovery already in flight for it.

        The joiner may run on a different thread's event loop than the caller
        that started the pipeline; the shared outcome is a concurrent future.
        """
        options = options or RecoveryOptions()
        outcome, created = self._in_flight.get_or_create(batch_id)
        if created:
            pipeline = asyncio.ensure_future(
                self._run_with_timeout(batch_id, options),
            )
            self._pipelines.add(pipeline)
            pipeline.add_done_callback(
                lambda t: self._settle(batch_id, outcome, t),
            )
        else:
            logger.info(
                "Recovery already in progress, waiting for completion",
                extra={"batch_id": batch_id},
            )
        return await asyncio.shield(asyncio.wrap_future(outcome))

    def _settle(
        self, batch_id: BatchId, outcome: Future, pipeline: asyncio.Task,
    ) -> None:
        """Drop the in-flight entry, then publish the pipeline's outcome to every joiner."""
        self._pipelines.discard(pipeline)
        self._in_flight.discard(batch_id, outcome)
        if pipeline.cancelled():
            outcome.cancel()
        elif pipeline.exception() is not None:
            outcome.set_exception(pipeline.exception())
        else:
            outcome.set_result(pipeline.result())

    def cancel_recovery(self, batch_id: BatchId) -> bool:
        """Drop the in-flight entry for batch_id. True if one existed."""
        if self._in_flight.pop(batch_id) is None:
            return False
        logger.info("Recovery cancelled", extra={"batch_id": batch_id})
        return True

    def get_active_recoveries(self) -> frozenset[BatchId]:
        return self._in_flight.active()

    # ─── Timeout ─────────────────────────────────────────────────

    async def _run_with_timeout(
        self, batch_id: BatchId, options: RecoveryOptions,
    ) -> RecoveryResult:
        started = time.perf_counter()
        timeout_ms = (
            options.timeout_ms if options.timeout_ms is not None
            else self.config.timeout_ms
        )
        if timeout_ms < self.config.min_timeout_ms:
            return self._timed_out(batch_id, timeout_ms, options, started)

        pipeline = asyncio.ensure_future(
            self._perform_recovery(batch_id, options, started),
        )
        done, _ = await asyncio.wait({pipeline}, timeout=timeout_ms / 1000)
        if pipeline in done:
            return pipeline.result()
        pipeline.add_done_callback(_log_abandoned)
        return self._timed_out(batch_id, timeout_ms, options, started)

    def _timed_out(
        self,
        batch_id: BatchId,
        timeout_ms: int,
        options: RecoveryOptions,
        started: float,
    ) -> RecoveryResult:
        error = RecoveryTimeoutError(timeout_ms, ErrorContext(batch_id=batch_id))
        logger.warning(
            "Recovery timeout exceeded",
            extra={"batch_id": batch_id, "error_code": error.code},
        )
        return timeout_result(
            error, options.preferred_source.value, _elapsed_ms(started),
        )

    # ─── Pipeline ────────────────────────────────────────────────

    def _source_order(self, options: RecoveryOptions) -> list[RecoverySource]:
        if options.preferred_source is RecoverySource.SERVER:
            order = [RecoverySource.SERVER, RecoverySource.LOCAL]
        else:
            order = [RecoverySource.LOCAL, RecoverySource.SERVER]
        if not options.has_server_context:
            order.remove(RecoverySource.SERVER)
        return order

    async def _recover_from(
        self, source: RecoverySource, batch_id: BatchId, options: RecoveryOptions,
    ) -> BatchState | None:
        if source is RecoverySource.SERVER:
            return await self.server.recover(
                batch_id, options.session_id, options.user_id,
            )
        return await self.local.recover(batch_id)

    async def _perform_recovery(
        self, batch_id: BatchId, options: RecoveryOptions, started: float,
    ) -> RecoveryResult:
        order = self._source_order(options)
        cross_check = (
            options.conflict_resolution is not None
            and self.config.enable_conflict_resolution
            and options.has_server_context
        )

        states: dict[RecoverySource, BatchState] = {}
        for source in order:
            state = await self._recover_from(source, batch_id, options)
            if state is None:
                continue
            states[source] = state
            if not cross_check:
                break

        if not states:
            error = AllSourcesExhaustedError(
                [s.value for s in order], ErrorContext(batch_id=batch_id),
            )
            logger.warning(
                "All recovery sources failed",
                extra={"batch_id": batch_id, "error_code": error.code},
            )
            return failed_result(error, order[0].value, _elapsed_ms(started))

        if len(states) > 1:
            return self._reconcile(batch_id, states, order, options, started)

        source, state = next(iter(states.items()))
        return self._finish(state, source.value, [source.value], [], options, started)

    def _reconcile(
        self,
        batch_id: BatchId,
        states: dict[RecoverySource, BatchState],
        order: list[RecoverySource],
        options: RecoveryOptions,
        started: float,
    ) -> RecoveryResult:
        """Both sources answered: detect conflicts, then merge or surface them."""
        local = states[RecoverySource.LOCAL]
        remote = states[RecoverySource.SERVER]
        consulted = [s.value for s in order]
        conflict = detect_conflicts(local, remote)
        if conflict is None:
            return self._finish(
                states[order[0]], order[0].value, consulted, [], options, started,
            )

        logger.info(
            "Conflicting batch state between local and server",
            extra={
                "batch_id": batch_id,
                "status": options.conflict_resolution.value,
            },
        )
        if options.conflict_resolution is ConflictResolutionMode.MANUAL:
            return conflict_result(
                conflict, RecoverySource.RECONCILED.value, _elapsed_ms(started),
            )
        resolved = auto_resolve_conflicts(conflict, remote)
        warning = f"Conflicts auto-resolved: {', '.join(conflict.conflict_fields)}"
        return self._finish(
            resolved, RecoverySource.RECONCILED.value, consulted, [warning],
            options, started,
        )

    def _finish(
        self,
        state: BatchState,
        source: str,
        recovered_items: list[str],
        warnings: list[str],
        options: RecoveryOptions,
        started: float,
    ) -> RecoveryResult:
        elapsed = _elapsed_ms(started)
        if options.allow_partial_recovery and is_degraded(state):
            return partial_result(state, source, elapsed)
        return success_result(state, source, elapsed, recovered_items, warnings)
