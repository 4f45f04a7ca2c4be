"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - recovery_config() is the only bridge from settings into the recovery core

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
    - Durations carry their unit in the name (_ms, _seconds)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from batch_recovery.core.recovery_config import RecoveryConfig


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (durable snapshot store)
    database_url: str = "sqlite+aiosqlite:///./batch_snapshots.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs use postgresql://, asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Remote batch API (server of record)
    batch_api_base_url: str = "http://localhost:5000/api"
    batch_api_timeout_seconds: float = 10.0

    # Recovery
    recovery_timeout_ms: int = Field(30_000, gt=0)
    recovery_min_timeout_ms: int = Field(5_000, ge=0)
    retry_attempts: int = Field(3, ge=0)
    retry_delay_ms: int = Field(1_000, ge=0)
    enable_progressive_recovery: bool = True
    enable_conflict_resolution: bool = True
    snapshot_cache_ttl_seconds: float = 300.0

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def recovery_config(self) -> RecoveryConfig:
        return RecoveryConfig(
            timeout_ms=self.recovery_timeout_ms,
            retry_attempts=self.retry_attempts,
            retry_delay_ms=self.retry_delay_ms,
            enable_progressive_recovery=self.enable_progressive_recovery,
            enable_conflict_resolution=self.enable_conflict_resolution,
            min_timeout_ms=self.recovery_min_timeout_ms,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
