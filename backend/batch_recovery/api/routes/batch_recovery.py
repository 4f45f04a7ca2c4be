"""Batch Recovery Routes — HTTP surface over the BatchRecoveryManager.

Invariants:
    - Every recovery outcome (success, failed, partial, timeout, conflict) is a 200
      with the status in the body; only malformed requests are 4xx
    - The manager comes from app.state via get_recovery_manager (overridable in tests)
    - Routes never touch stores or the remote API directly

Design Decisions:
    - DELETE on the recovery resource maps to advisory cancel_recovery
    - fallbackToProgressive folds the salvage path into one request
"""

from fastapi import APIRouter, Depends, Request

from batch_recovery.core.domain_types import BatchId
from batch_recovery.schemas.recovery import (
    ProgressiveRecoveryRequest, ProgressiveRecoveryResponse,
    RecoveryRequest, RecoveryResultResponse,
)
from batch_recovery.services.recovery_manager import BatchRecoveryManager

router = APIRouter(prefix="/api/v1", tags=["recovery"])


def get_recovery_manager(request: Request) -> BatchRecoveryManager:
    """FastAPI dependency — the process-wide manager built in lifespan."""
    return request.app.state.recovery_manager


@router.post(
    "/batches/{batch_id}/recovery", response_model=RecoveryResultResponse,
)
async def recover_batch(
    batch_id: str,
    body: RecoveryRequest,
    manager: BatchRecoveryManager = Depends(get_recovery_manager),
):
    """Recover a batch's state from local and server sources."""
    options = body.to_options()
    if body.fallback_to_progressive:
        result, salvaged = await manager.recover_with_fallback(
            BatchId(batch_id), options,
        )
        return RecoveryResultResponse.from_result(result, salvaged)
    result = await manager.recover_batch_state(BatchId(batch_id), options)
    return RecoveryResultResponse.from_result(result)


@router.post(
    "/batches/{batch_id}/recovery/progressive",
    response_model=ProgressiveRecoveryResponse,
)
async def recover_batch_components(
    batch_id: str,
    body: ProgressiveRecoveryRequest,
    manager: BatchRecoveryManager = Depends(get_recovery_manager),
):
    """Recover named sub-resources of a batch independently."""
    result = await manager.progressive_recovery(
        BatchId(batch_id), body.components, body.session_id,
    )
    return ProgressiveRecoveryResponse.from_result(result)


@router.delete("/batches/{batch_id}/recovery")
async def cancel_batch_recovery(
    batch_id: str,
    manager: BatchRecoveryManager = Depends(get_recovery_manager),
):
    """Drop the in-flight recovery entry for a batch (advisory)."""
    return {"cancelled": manager.cancel_recovery(BatchId(batch_id))}


@router.get("/recoveries/active")
async def list_active_recoveries(
    manager: BatchRecoveryManager = Depends(get_recovery_manager),
):
    return {"batchIds": sorted(manager.get_active_recoveries())}
