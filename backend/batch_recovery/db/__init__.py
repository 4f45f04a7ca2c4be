"""Database Infrastructure — SQLAlchemy declarative Base for the snapshot tables.

Invariants:
    - Engines and sessions are owned by infrastructure/database.py

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for local development and tests
"""
