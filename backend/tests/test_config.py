"""Settings — environment parsing and the bridge into RecoveryConfig."""

from batch_recovery.config import Settings
from batch_recovery.core.recovery_config import DEFAULT_RECOVERY_CONFIG


def test_postgres_url_converted_to_asyncpg():
    settings = Settings(database_url="postgresql://u:p@db/batches")
    assert settings.database_url == "postgresql+asyncpg://u:p@db/batches"


def test_recovery_config_from_env(monkeypatch):
    monkeypatch.setenv("RECOVERY_TIMEOUT_MS", "12000")
    monkeypatch.setenv("RECOVERY_MIN_TIMEOUT_MS", "100")
    monkeypatch.setenv("ENABLE_PROGRESSIVE_RECOVERY", "false")

    config = Settings(_env_file=None).recovery_config()

    assert config.timeout_ms == 12_000
    assert config.min_timeout_ms == 100
    assert config.enable_progressive_recovery is False
    assert config.retry_attempts == DEFAULT_RECOVERY_CONFIG.retry_attempts


def test_defaults_match_core_defaults(monkeypatch):
    for name in ("RECOVERY_TIMEOUT_MS", "RECOVERY_MIN_TIMEOUT_MS", "RETRY_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    assert Settings(_env_file=None).recovery_config() == DEFAULT_RECOVERY_CONFIG
