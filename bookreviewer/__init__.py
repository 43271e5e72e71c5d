"""
Book Reviewer API Package

Reviews, likes, favorites and threaded comments on books, with
privacy-aware user profiles.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and get_db dependency
- exceptions.py: Application error taxonomy rendered as the JSON envelope
- main.py: FastAPI application factory and exception handlers
- dependencies.py: Pagination, client IP and actor resolution
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business rules (authorization gate, counters, engagement)
"""

__version__ = "1.0.0"
