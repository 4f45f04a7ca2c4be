"""Progressive Recovery — recover a batch's sub-resources one component at a time.

Invariants:
    - Components are recovered independently: one failure never stops the others
    - A failed or empty component lands in `failed` with a warning; nothing is raised
    - resumes: the `resumes` list itself is the recovered value (an empty list counts)
    - analysis: an empty `results` list means nothing was recovered
    - metadata: any successfully parsed body counts as recovered
    - Disabled by config → nothing fetched, every requested component failed

Design Decisions:
    - Fetchers registered per component in a dict: unknown names fail like any
      other component instead of aborting the run
    - Sequential, not gathered: keeps request order deterministic for the remote API
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from types import MappingProxyType
from typing import Any

from batch_recovery.core.domain_types import (
    DEFAULT_COMPONENTS, BatchId, RecoveryComponent, SessionId,
)
from batch_recovery.core.errors import (
    ErrorContext, RemoteApiError, UnknownComponentError,
)
from batch_recovery.core.recovery_config import DEFAULT_RECOVERY_CONFIG, RecoveryConfig
from batch_recovery.core.recovery_result import ProgressiveRecoveryResult
from batch_recovery.core.repository_protocols import BatchApi
from batch_recovery.services.source_recovery import build_path, validation_path

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str | None], Awaitable[Any]]


class ProgressiveRecovery:
    """Per-component recovery against the remote batch API."""

    def __init__(
        self,
        api: BatchApi,
        config: RecoveryConfig = DEFAULT_RECOVERY_CONFIG,
        analysis_run: int = 1,
    ):
        self.api = api
        self.config = config
        self.analysis_run = analysis_run
        self._fetchers: dict[str, Fetcher] = {
            RecoveryComponent.RESUMES.value: self.recover_resumes,
            RecoveryComponent.ANALYSIS.value: self.recover_analysis,
            RecoveryComponent.METADATA.value: self.recover_metadata,
        }

    async def recover(
        self,
        batch_id: BatchId,
        components: Iterable[str] = DEFAULT_COMPONENTS,
        session_id: SessionId | None = None,
    ) -> ProgressiveRecoveryResult:
        components = list(components)
        if not self.config.enable_progressive_recovery:
            return ProgressiveRecoveryResult(
                failed=tuple(components),
                warnings=("Progressive recovery is disabled",),
            )

        recovered: dict[str, Any] = {}
        failed: list[str] = []
        warnings: list[str] = []
        for component in components:
            try:
                result = await self._fetch(component, batch_id, session_id)
            except Exception as e:
                failed.append(component)
                warnings.append(f"Failed to recover {component}: {e}")
                logger.warning(
                    "Component recovery failed: %s", e,
                    extra={"batch_id": batch_id, "component": component},
                )
                continue
            if result is None:
                failed.append(component)
                warnings.append(f"Failed to recover {component}")
                continue
            recovered[component] = result

        logger.info(
            "Progressive recovery finished",
            extra={
                "batch_id": batch_id,
                "status": f"{len(recovered)}/{len(components)} recovered",
            },
        )
        return ProgressiveRecoveryResult(
            recovered=MappingProxyType(recovered),
            failed=tuple(failed),
            warnings=tuple(warnings),
        )

    async def _fetch(
        self, component: str, batch_id: BatchId, session_id: SessionId | None,
    ) -> Any:
        fetcher = self._fetchers.get(component)
        if fetcher is None:
            raise UnknownComponentError(
                component, ErrorContext(batch_id=batch_id),
            )
        return await fetcher(batch_id, session_id)

    async def _get_json(self, path: str, batch_id: BatchId, component: str) -> Any:
        response = await self.api.request("GET", path)
        if not response.ok:
            raise RemoteApiError(
                f"status {response.status_code}",
                status_code=response.status_code,
                context=ErrorContext(batch_id=batch_id, component=component),
            )
        return response.json()

    # ─── Component fetchers ──────────────────────────────────────

    async def recover_resumes(
        self, batch_id: BatchId, session_id: SessionId | None = None,
    ) -> list | None:
        path = build_path("/resumes", batchId=batch_id, sessionId=session_id)
        data = await self._get_json(path, batch_id, RecoveryComponent.RESUMES.value)
        resumes = data.get("resumes") if isinstance(data, dict) else None
        return resumes if isinstance(resumes, list) else None

    async def recover_analysis(
        self, batch_id: BatchId, session_id: SessionId | None = None,
    ) -> dict | None:
        path = build_path(
            f"/analysis/analyze/{self.analysis_run}",
            batchId=batch_id, sessionId=session_id,
        )
        data = await self._get_json(path, batch_id, RecoveryComponent.ANALYSIS.value)
        if isinstance(data, dict) and data.get("results"):
            return data
        return None

    async def recover_metadata(
        self, batch_id: BatchId, session_id: SessionId | None = None,
    ) -> Any:
        path = validation_path(batch_id, sessionId=session_id)
        return await self._get_json(path, batch_id, RecoveryComponent.METADATA.value)
