"""
Shared Response Schemas

Every endpoint answers with the same envelope:

    {
        "success": true,
        "message": "Review liked",
        "data": {...},          # optional payload
        "code": "ALREADY_LIKED" # only on errors
    }

List endpoints put their rows and the pagination block inside `data`:

    {"items": [...], "pagination": {"page": 1, "limit": 20, "total": 42, "pages": 3}}
"""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard response envelope."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(default="OK", description="Human-readable summary")
    data: T | None = Field(default=None, description="Response payload")
    code: str | None = Field(default=None, description="Machine-readable error code")


class PaginationMeta(BaseModel):
    """Pagination block for list responses."""

    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")
    pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        pages = math.ceil(total / limit) if total > 0 else 0
        return cls(page=page, limit=limit, total=total, pages=pages)


class Page(BaseModel, Generic[T]):
    """A page of items plus its pagination block."""

    items: list[T]
    pagination: PaginationMeta


def ok(data=None, message: str = "OK") -> dict:
    """Build a success envelope."""
    return {"success": True, "message": message, "data": data}
