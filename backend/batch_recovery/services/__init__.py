"""Services Layer — recovery orchestration over the pure core.

Invariants:
    - Services await collaborators; every decision is delegated to core/
    - No service holds process-wide state in a module global

Design Decisions:
    - One file per strategy (sources, coordinator, progressive, facade) for locality
"""
