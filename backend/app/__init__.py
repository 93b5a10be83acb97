"""
Mindtrail Backend - Application Package Initializer
====================================================

What:  Marks the `app` directory as a Python package.
Who:   Used by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, access policy
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← auth, form records, summaries, profile
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes handle status codes and headers and delegate to services.
    Services can be exercised without HTTP.
"""

__version__ = "1.0.0"
