"""Batch Recovery API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RecoveryServiceError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, snapshot stores, remote client and recovery manager built in lifespan
      and published on app.state; nothing process-wide lives in module globals

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_schema only for SQLite: production schemas are owned by alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from batch_recovery.api.error_handlers import register_error_handlers
from batch_recovery.api.routes import batch_recovery, health
from batch_recovery.config import get_settings
from batch_recovery.infrastructure.batch_api_client import ResilientBatchApiClient
from batch_recovery.infrastructure.database import init_db
from batch_recovery.infrastructure.observability import setup_logging
from batch_recovery.infrastructure.snapshot_store import (
    InMemorySnapshotCache, SqlSnapshotStore, TieredSnapshotStore,
)
from batch_recovery.services.recovery_manager import build_recovery_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await db_manager.create_schema()

    store = TieredSnapshotStore(
        InMemorySnapshotCache(settings.snapshot_cache_ttl_seconds),
        SqlSnapshotStore(db_manager),
    )
    api_client = ResilientBatchApiClient(
        settings.batch_api_base_url,
        max_retries=settings.retry_attempts,
        base_delay_ms=settings.retry_delay_ms,
        timeout_seconds=settings.batch_api_timeout_seconds,
    )
    app.state.db_manager = db_manager
    app.state.recovery_manager = build_recovery_manager(
        store, api_client, settings.recovery_config(),
    )
    logger.info("Batch Recovery API started")
    yield
    logger.info("Batch Recovery API shutting down")
    await api_client.aclose()
    await db_manager.dispose()


app = FastAPI(
    title="Batch Recovery API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(batch_recovery.router)

register_error_handlers(app)
