"""ORM Models — SQLAlchemy declarative models for the durable snapshot store.

Invariants:
    - All models inherit from Base (db/base.py)
    - Importing this package registers every table on Base.metadata

Design Decisions:
    - One file per entity for locality
"""

from batch_recovery.models.batch_snapshot import BatchSnapshot  # noqa: F401
