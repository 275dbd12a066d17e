"""Infrastructure Layer - database, logging, identity and locking.

Invariants:
    - Infrastructure never imports from services/ or api/
"""
