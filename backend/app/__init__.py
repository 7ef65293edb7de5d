"""
Userbase Backend - Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), the `userbase` console script, and pytest.

Architecture Note:
    The backend is layered the same way for every request:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← method + path → service call
    ├─────────────────────────────────────┤
    │      Services (Request Handling)    │  ← parse, validate, map outcomes
    ├─────────────────────────────────────┤
    │     Repositories (Persistence)      │  ← ORM queries, no HTTP knowledge
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Routes never touch the session directly, and repositories never raise
    HTTP-flavoured errors. Each layer can be tested with the one below mocked.
"""

__version__ = "1.0.0"
