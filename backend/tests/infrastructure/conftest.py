"""Infrastructure test fixtures — in-memory SQLite snapshot store.

Invariants:
    - Every test gets a fresh in-memory database with the schema created

Design Decisions:
    - SQLite in-memory via aiosqlite: fast, no external dependency; JSON columns
      behave the same for the read paths exercised here
"""

import pytest

from batch_recovery.infrastructure.database import init_db


@pytest.fixture
async def db_manager():
    manager = init_db("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.dispose()
