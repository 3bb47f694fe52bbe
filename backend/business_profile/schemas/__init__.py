"""Pydantic Schemas — store record variants and API request/response bodies.

Invariants:
    - Schemas validate at system boundaries (store rows, user input)

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence (ADR: DDD boundary)
"""
