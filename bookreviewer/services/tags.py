"""
Tag Service

Tags are a read-mostly side-store; the default set is created on startup and
by the seed script.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreviewer.models.tag import DEFAULT_TAGS, Tag

logger = logging.getLogger(__name__)


def list_tags(db: Session) -> list[Tag]:
    """All tags, most used first."""
    return list(
        db.execute(select(Tag).order_by(Tag.usage_count.desc(), Tag.name.asc())).scalars()
    )


def ensure_default_tags(db: Session) -> int:
    """Insert the default tags that are missing. Returns how many were added."""
    existing = set(db.execute(select(Tag.name)).scalars())
    added = 0
    for name, description, color in DEFAULT_TAGS:
        if name not in existing:
            db.add(Tag(name=name, description=description, color=color))
            added += 1
    if added:
        db.commit()
        logger.info(f"Created {added} default tags")
    return added
