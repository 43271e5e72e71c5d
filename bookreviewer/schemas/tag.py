"""
Tag Pydantic Schemas
"""

from pydantic import BaseModel, ConfigDict


class TagResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    color: str
    usage_count: int

    model_config = ConfigDict(from_attributes=True)
