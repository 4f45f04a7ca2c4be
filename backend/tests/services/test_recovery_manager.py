"""BatchRecoveryManager — tests for facade delegation and the progressive fallback.

Tests cover:
    - recover_with_fallback salvages components only after a FAILED recovery
    - build_recovery_manager wires a working graph from a store and an API
"""

from batch_recovery.core.domain_types import RecoveryStatus
from batch_recovery.core.recovery_config import RecoveryConfig, RecoveryOptions
from batch_recovery.services.recovery_manager import build_recovery_manager

from tests.services.fakes import (
    FakeResponse, server_state, snapshot_record, validate_route,
)


async def test_fallback_not_used_on_success(store, api, manager):
    store.records["b1"] = snapshot_record("b1")
    result, salvaged = await manager.recover_with_fallback("b1")
    assert result.status is RecoveryStatus.SUCCESS
    assert salvaged is None
    assert api.calls == []


async def test_fallback_salvages_components_after_failure(api, manager):
    api.routes["/resumes"] = FakeResponse(200, {"resumes": [{"id": "r1"}]})

    result, salvaged = await manager.recover_with_fallback(
        "b1", RecoveryOptions(session_id="s1"), components=["resumes", "analysis"],
    )

    assert result.status is RecoveryStatus.FAILED
    assert salvaged.recovered["resumes"] == [{"id": "r1"}]
    assert salvaged.failed == ("analysis",)


async def test_fallback_not_used_on_timeout(api, manager):
    result, salvaged = await manager.recover_with_fallback(
        "b1", RecoveryOptions(timeout_ms=-1),
    )
    assert result.status is RecoveryStatus.TIMEOUT
    assert salvaged is None


async def test_cancel_and_active_delegate(manager):
    assert manager.get_active_recoveries() == frozenset()
    assert manager.cancel_recovery("b1") is False


async def test_build_recovery_manager_wires_graph(store, api):
    api.routes[validate_route("b1")] = server_state("b1", resumeCount=3)
    manager = build_recovery_manager(store, api, RecoveryConfig(min_timeout_ms=0))

    result = await manager.recover_batch_state("b1", RecoveryOptions(user_id="u1"))

    assert result.status is RecoveryStatus.SUCCESS
    assert result.restored_state.resume_count == 3
    progressive = await manager.progressive_recovery("b1", ["metadata"])
    assert "metadata" in progressive.recovered
