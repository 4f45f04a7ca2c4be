"""Alembic environment for the batch snapshot store (async engine).

The database URL comes from Settings, so DATABASE_URL and its asyncpg
rewrite behave exactly as they do for the running service.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from batch_recovery.config import get_settings
from batch_recovery.db.base import Base
from batch_recovery.models.batch_snapshot import BatchSnapshot  # noqa: F401

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(target_metadata=Base.metadata, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)


async def _migrate_online(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


url = get_settings().database_url
if context.is_offline_mode():
    _configure(
        url=url, literal_binds=True, dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_migrate_online(url))
