"""
Curio Backend — Application Package Initializer
================================================

What: The `curio` package: link-curation boards, the browser-extension
      capture API and the Atelier spatial canvas.
Who:  Imported by uvicorn (curio.main:app), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← access rules, soft delete, layout patch
    ├─────────────────────────────────────┤
    │  Core & Atelier rules (pure logic)  │  ← YouTube metadata, slugs, sanitizers
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The canvas side (`curio.atelier.canvas`, `curio.atelier.autosave`) runs
    in the client process and reaches the server only over HTTP.
"""

__version__ = "1.0.0"
