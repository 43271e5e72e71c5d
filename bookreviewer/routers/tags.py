"""
Tags Router

- GET /tags  every tag with its usage count
"""

from fastapi import APIRouter

from bookreviewer.dependencies import DbSession
from bookreviewer.schemas.common import APIResponse, ok
from bookreviewer.schemas.tag import TagResponse
from bookreviewer.services.tags import list_tags

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=APIResponse[list[TagResponse]], summary="List tags")
def get_tags(db: DbSession) -> dict:
    return ok([TagResponse.model_validate(tag) for tag in list_tags(db)])
