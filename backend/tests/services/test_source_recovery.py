"""Source Recovery Strategies — tests for local snapshot and server validation reads.

Tests cover:
    - recover() returns a BatchState or None, never raises
    - Local accepts PersistedSnapshot objects and camelCase records
    - Server query parameters and non-ok handling
    - Failures logged under a fixed message with the error text in extra
"""

import logging

from batch_recovery.core.batch_state import BatchState
from batch_recovery.core.domain_types import BatchStatus
from batch_recovery.core.snapshot import STORAGE_VERSION, PersistedSnapshot
from batch_recovery.services.source_recovery import (
    LocalRecovery, ServerRecovery, build_path, validation_path,
)

from tests.services.fakes import (
    FakeResponse, server_state, snapshot_record, validate_route,
)


# -- Paths ---------------------------------------------------------------------

def test_build_path_skips_none_params():
    assert build_path("/resumes", batchId="b1", sessionId=None) == "/resumes?batchId=b1"


def test_build_path_without_params():
    assert build_path("/resumes") == "/resumes"


def test_validation_path_quotes_batch_id():
    assert validation_path("a/b c") == "/batches/a%2Fb%20c/validate"


# -- Local ---------------------------------------------------------------------

async def test_local_recovers_from_record(store):
    store.records["b1"] = snapshot_record("b1", resumeCount=6)
    state = await LocalRecovery(store).recover("b1")
    assert state.resume_count == 6
    assert state.status is BatchStatus.READY


async def test_local_recovers_from_snapshot_object(store):
    state = BatchState(current_batch_id="b1", status=BatchStatus.PROCESSING)
    store.records["b1"] = PersistedSnapshot(
        version=STORAGE_VERSION, timestamp=0, batch_id="b1", state=state,
    )
    assert await LocalRecovery(store).recover("b1") is state


async def test_local_missing_snapshot_returns_none(store):
    assert await LocalRecovery(store).recover("b1") is None


async def test_local_store_error_logged_and_swallowed(store, caplog):
    store.error = RuntimeError("quota exceeded")
    assert await LocalRecovery(store).recover("b1") is None
    failures = [
        r for r in caplog.records
        if r.levelno == logging.WARNING
        and r.getMessage() == "Storage recovery failed"
    ]
    assert len(failures) == 1
    assert failures[0].error == "quota exceeded"
    assert failures[0].source == "local"


async def test_local_incompatible_version_returns_none(store):
    store.records["b1"] = {**snapshot_record("b1"), "version": "0.9.0"}
    assert await LocalRecovery(store).recover("b1") is None


# -- Server --------------------------------------------------------------------

async def test_server_sends_context_as_query(api):
    api.routes[validate_route("b1")] = server_state("b1")
    state = await ServerRecovery(api).recover("b1", "s1", "u1")
    assert state.current_batch_id == "b1"
    assert api.calls == [("GET", "/batches/b1/validate?sessionId=s1&userId=u1")]


async def test_server_non_ok_returns_none(api, caplog):
    api.routes[validate_route("b1")] = FakeResponse(503)
    assert await ServerRecovery(api).recover("b1", "s1") is None
    failures = [
        r for r in caplog.records if r.getMessage() == "Server recovery failed"
    ]
    assert len(failures) == 1
    assert failures[0].error == "Remote API error: status 503"
    assert failures[0].error_code == "REMOTE_API_ERROR"


async def test_server_transport_error_returns_none(api):
    api.routes[validate_route("b1")] = ConnectionError("refused")
    assert await ServerRecovery(api).recover("b1", "s1") is None


async def test_server_malformed_payload_logged_as_source_unavailable(api, caplog):
    api.routes[validate_route("b1")] = FakeResponse(200, {"resumeCount": -3})
    assert await ServerRecovery(api).recover("b1", "s1") is None
    failures = [
        r for r in caplog.records
        if r.getMessage() == "Server recovery failed"
    ]
    assert failures[0].error_code == "SOURCE_UNAVAILABLE"
    assert failures[0].error.startswith("Source 'server' unavailable: malformed response")
