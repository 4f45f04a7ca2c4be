"""BatchState — tests for parsing, aliases and comparable-field selection.

Tests cover:
    - camelCase payloads and snake_case constructors build the same state
    - Unknown statuses and negative counters rejected
    - Frozen instances
    - model_fields_set tracks only the fields a source reported
"""

import pytest
from pydantic import ValidationError

from batch_recovery.core.batch_state import (
    COMPARABLE_FIELDS, STATE_SCHEMA_VERSION, BatchState, comparable_fields,
    is_degraded,
)
from batch_recovery.core.domain_types import BatchStatus


def test_parses_camel_case_payload():
    state = BatchState.model_validate({
        "currentBatchId": "b1",
        "sessionId": "s1",
        "status": "ready",
        "resumeCount": 4,
        "securityFlags": ["x"],
        "serverValidated": True,
    })
    assert state.current_batch_id == "b1"
    assert state.session_id == "s1"
    assert state.status is BatchStatus.READY
    assert state.resume_count == 4
    assert state.security_flags == ("x",)
    assert state.server_validated is True


def test_batch_id_alias_accepted():
    state = BatchState.model_validate({"batchId": "b9", "status": "pending"})
    assert state.current_batch_id == "b9"


def test_unknown_fields_ignored():
    state = BatchState.model_validate({"status": "ready", "somethingNew": 1})
    assert not hasattr(state, "somethingNew")


def test_unknown_status_rejected():
    with pytest.raises(ValidationError):
        BatchState.model_validate({"status": "exploded"})


def test_negative_resume_count_rejected():
    with pytest.raises(ValidationError):
        BatchState(status=BatchStatus.READY, resume_count=-1)


def test_state_is_frozen():
    state = BatchState(status=BatchStatus.READY)
    with pytest.raises(ValidationError):
        state.resume_count = 5


def test_fields_set_tracks_reported_fields():
    state = BatchState.model_validate({"status": "ready", "resumeCount": 2})
    assert state.model_fields_set == {"status", "resume_count"}


def test_dump_uses_camel_case_aliases():
    dumped = BatchState(status=BatchStatus.ERROR, retry_count=2).model_dump(
        mode="json", by_alias=True,
    )
    assert dumped["status"] == "error"
    assert dumped["retryCount"] == 2
    assert "currentBatchId" in dumped


# -- Comparable fields ---------------------------------------------------------

def test_comparable_fields_current_version():
    fields = comparable_fields(STATE_SCHEMA_VERSION)
    assert fields == COMPARABLE_FIELDS[STATE_SCHEMA_VERSION]
    assert "status" in fields
    assert "resume_count" in fields


def test_comparable_fields_unknown_version_falls_back_to_latest():
    assert comparable_fields("9.9.9") == COMPARABLE_FIELDS[STATE_SCHEMA_VERSION]
    assert comparable_fields(None) == COMPARABLE_FIELDS[STATE_SCHEMA_VERSION]


def test_comparable_fields_exist_on_model():
    for name in comparable_fields():
        assert name in BatchState.model_fields


# -- Degraded ------------------------------------------------------------------

def test_zero_resumes_is_degraded():
    assert is_degraded(BatchState(status=BatchStatus.READY)) is True


def test_resumes_present_not_degraded():
    assert is_degraded(BatchState(status=BatchStatus.READY, resume_count=1)) is False
