"""Services Layer — async orchestration of the core against the boundary protocols.

Invariants:
    - Every remote failure is caught here and turned into a typed outcome or event
    - No service imports from api/
"""
