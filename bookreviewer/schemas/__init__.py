"""
Pydantic Schemas Package

Request/response models, kept separate from the SQLAlchemy models so the API
controls exactly what is exposed.

Schema Naming Convention:
- XxxCreate / XxxUpdate: request bodies
- XxxResponse: rows returned to clients
- APIResponse[T]: the envelope every endpoint answers with
"""

from bookreviewer.schemas.common import APIResponse, Page, PaginationMeta, ok

__all__ = ["APIResponse", "Page", "PaginationMeta", "ok"]
