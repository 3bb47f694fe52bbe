"""Infrastructure Layer — concrete store, generation client and cross-cutting concerns.

Invariants:
    - Implements the Protocols in core/repository_protocols.py; core never imports back
    - All external calls wrapped with error mapping to core/errors.py types

Design Decisions:
    - Resilient wrappers over raw clients (ADR: single responsibility)
"""
