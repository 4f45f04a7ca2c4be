"""Root conftest — shared test configuration."""

import os

# Tests never reach a real database or remote batch API
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BATCH_API_BASE_URL", "http://batch-api.test/api")
os.environ.setdefault("LOG_FORMAT", "text")
