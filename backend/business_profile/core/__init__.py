"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - State machines mutate only themselves; every remote call lives in services/

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
