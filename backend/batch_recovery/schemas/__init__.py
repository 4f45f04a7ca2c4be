"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Responses are built from core result objects, never from ORM rows

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
