"""Infrastructure Layer — database, snapshot stores, remote API client, logging.

Invariants:
    - Infrastructure implements the core Protocols; core never imports from here
    - All remote calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (httpx, SQLAlchemy)
"""
