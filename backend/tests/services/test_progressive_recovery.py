"""Progressive Recovery — tests for per-component recovery from the remote API.

Tests cover:
    - One failing component never stops the others
    - Empty analysis counts as not recovered, an empty resumes list counts
    - Unknown components fail with a warning
    - Disabled by config, nothing fetched
"""

from batch_recovery.core.recovery_config import RecoveryConfig
from batch_recovery.services.progressive_recovery import ProgressiveRecovery

from tests.services.fakes import FakeResponse, validate_route


async def test_all_components_recovered(api, config):
    api.routes["/resumes"] = FakeResponse(200, {"resumes": [{"id": "r1"}]})
    api.routes["/analysis/analyze/1"] = FakeResponse(200, {"results": [{"score": 1}]})
    api.routes[validate_route("b1")] = FakeResponse(200, {"status": "ready"})

    result = await ProgressiveRecovery(api, config).recover("b1", session_id="s1")

    assert set(result.recovered) == {"resumes", "analysis", "metadata"}
    assert result.recovered["resumes"] == [{"id": "r1"}]
    assert result.failed == ()
    assert result.warnings == ()
    assert api.paths() == [
        "/resumes?batchId=b1&sessionId=s1",
        "/analysis/analyze/1?batchId=b1&sessionId=s1",
        "/batches/b1/validate?sessionId=s1",
    ]


async def test_failure_isolated_to_one_component(api, config):
    api.routes["/resumes"] = FakeResponse(500)
    api.routes["/analysis/analyze/1"] = FakeResponse(200, {"results": [1]})
    api.routes[validate_route("b1")] = FakeResponse(200, {"status": "ready"})

    result = await ProgressiveRecovery(api, config).recover("b1")

    assert result.failed == ("resumes",)
    assert set(result.recovered) == {"analysis", "metadata"}
    assert result.warnings[0].startswith("Failed to recover resumes: ")


async def test_empty_analysis_not_recovered(api, config):
    api.routes["/analysis/analyze/1"] = FakeResponse(200, {"results": []})
    result = await ProgressiveRecovery(api, config).recover("b1", ["analysis"])
    assert result.failed == ("analysis",)
    assert result.warnings == ("Failed to recover analysis",)


async def test_empty_resumes_list_is_recovered(api, config):
    api.routes["/resumes"] = FakeResponse(200, {"resumes": []})
    result = await ProgressiveRecovery(api, config).recover("b1", ["resumes"])
    assert result.recovered["resumes"] == []
    assert result.failed == ()


async def test_analysis_run_is_configurable(api, config):
    api.routes["/analysis/analyze/3"] = FakeResponse(200, {"results": [1]})
    result = await ProgressiveRecovery(api, config, analysis_run=3).recover(
        "b1", ["analysis"],
    )
    assert "analysis" in result.recovered


async def test_unknown_component_fails_without_request(api, config):
    result = await ProgressiveRecovery(api, config).recover("b1", ["thumbnails"])
    assert result.failed == ("thumbnails",)
    assert "Unknown recovery component 'thumbnails'" in result.warnings[0]
    assert api.calls == []


async def test_raising_api_is_isolated(api, config):
    api.routes["/resumes"] = TimeoutError("slow")
    api.routes[validate_route("b1")] = FakeResponse(200, {"status": "ready"})
    result = await ProgressiveRecovery(api, config).recover(
        "b1", ["resumes", "metadata"],
    )
    assert result.failed == ("resumes",)
    assert "metadata" in result.recovered


async def test_disabled_fetches_nothing(api):
    progressive = ProgressiveRecovery(
        api, RecoveryConfig(enable_progressive_recovery=False),
    )
    result = await progressive.recover("b1", ["resumes", "metadata"])
    assert result.failed == ("resumes", "metadata")
    assert result.warnings == ("Progressive recovery is disabled",)
    assert dict(result.recovered) == {}
    assert api.calls == []
