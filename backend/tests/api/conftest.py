"""API test fixtures — FastAPI test client over a manager wired to fakes.

Invariants:
    - get_recovery_manager is overridden; lifespan never runs (no DB, no remote API)
    - Overrides are cleared after every test

Design Decisions:
    - ASGITransport + AsyncClient: exercises routing, validation and error handlers
      in-process
"""

import pytest
from httpx import ASGITransport, AsyncClient

from batch_recovery.api.routes.batch_recovery import get_recovery_manager
from batch_recovery.core.recovery_config import RecoveryConfig
from batch_recovery.main import app
from batch_recovery.services.recovery_manager import build_recovery_manager

from tests.services.fakes import FakeBatchApi, FakeSnapshotStore


@pytest.fixture
def store():
    return FakeSnapshotStore()


@pytest.fixture
def api():
    return FakeBatchApi()


@pytest.fixture
def manager(store, api):
    return build_recovery_manager(store, api, RecoveryConfig(min_timeout_ms=0))


@pytest.fixture
async def client(manager):
    app.dependency_overrides[get_recovery_manager] = lambda: manager
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
