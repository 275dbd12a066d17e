"""Database package - declarative base shared by every ORM model.

Invariants:
    - All sessions are async (AsyncSession), created by infrastructure/database.py
"""
