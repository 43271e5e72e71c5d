"""
SQLAlchemy Models Package

Model Relationships:
- User -> Review, ReviewLike, UserFavorite, ReviewComment: One-to-Many
- Book -> Review: One-to-Many
- Review -> ReviewLike, UserFavorite, ReviewComment: One-to-Many
- ReviewComment -> ReviewComment: parent/replies (two levels)
- Book <-> Tag: Many-to-Many through book_tags

Import all models here so Alembic discovers them and the app has a single
import point.
"""

from bookreviewer.models.user import User, UserRole, UserStatus
from bookreviewer.models.book import Book, book_tags
from bookreviewer.models.review import Review, ReviewStatus
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.comment import CommentStatus, ReviewComment
from bookreviewer.models.tag import Tag
from bookreviewer.models.system_log import SystemLog

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Book",
    "book_tags",
    "Review",
    "ReviewStatus",
    "ReviewLike",
    "UserFavorite",
    "ReviewComment",
    "CommentStatus",
    "Tag",
    "SystemLog",
]
