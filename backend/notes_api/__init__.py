"""
Notes API — Application Package Initializer
============================================

What: HTTP core of a single-resource note-taking service.
Who:  Imported by uvicorn (`uvicorn notes_api.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Middleware (recover, CORS, log)   │  ← cross-cutting concerns
    ├─────────────────────────────────────┤
    │        Routes (API Layer)           │  ← decode, validate, respond
    ├─────────────────────────────────────┤
    │   Codec & Validator                 │  ← strict JSON in, canonical JSON out
    ├─────────────────────────────────────┤
    │   Note Store (Persistence gateway)  │  ← async SQLAlchemy CRUD
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
