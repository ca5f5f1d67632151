"""
Inkwell Backend — Application Package
=======================================

A blogging backend: user accounts with bcrypt password hashing, stateless
JWT sessions carried in a cookie, and author-owned posts with optional
cover images.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (auth, posts, covers)     │  ← Business rules, authorization
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
