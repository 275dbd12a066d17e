"""API Layer - FastAPI routes, request dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - The acting user is resolved once per request in api/deps.py

Design Decisions:
    - Thin routes delegate to services: imperative shell around the pure core
"""
