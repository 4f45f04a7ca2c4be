"""Service test fixtures — fake collaborators and a coordinator wired over them.

Invariants:
    - Every test gets fresh fakes (no state shared between tests)
    - The default test config has no timeout floor so short timeouts can be exercised

Design Decisions:
    - Fakes live in tests/services/fakes.py so API tests can reuse them
"""

import pytest

from batch_recovery.core.recovery_config import RecoveryConfig
from batch_recovery.services.progressive_recovery import ProgressiveRecovery
from batch_recovery.services.recovery_coordinator import RecoveryCoordinator
from batch_recovery.services.recovery_manager import BatchRecoveryManager
from batch_recovery.services.source_recovery import LocalRecovery, ServerRecovery

from tests.services.fakes import FakeBatchApi, FakeSnapshotStore


@pytest.fixture
def store():
    return FakeSnapshotStore()


@pytest.fixture
def api():
    return FakeBatchApi()


@pytest.fixture
def config():
    return RecoveryConfig(timeout_ms=2_000, min_timeout_ms=0)


@pytest.fixture
def coordinator(store, api, config):
    return RecoveryCoordinator(LocalRecovery(store), ServerRecovery(api), config)


@pytest.fixture
def manager(coordinator, api, config):
    return BatchRecoveryManager(coordinator, ProgressiveRecovery(api, config))
