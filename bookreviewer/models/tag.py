"""
Tag Model

Free-form labels attached to books through the book_tags association table.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base
from bookreviewer.models.book import book_tags

if TYPE_CHECKING:
    from bookreviewer.models.book import Book


DEFAULT_TAGS = [
    ("Fiction", "Novels and short stories", "#007bff"),
    ("Literature", "Classic and literary works", "#6f42c1"),
    ("History", "History and biography", "#fd7e14"),
    ("Technology", "Computing and engineering", "#20c997"),
    ("Philosophy", "Philosophy and ideas", "#6c757d"),
    ("Psychology", "Mind and behaviour", "#e83e8c"),
    ("Economics", "Economics and business", "#28a745"),
    ("Science", "Popular science", "#17a2b8"),
    ("Self-help", "Personal growth", "#ffc107"),
    ("Art", "Art and design", "#dc3545"),
]


class Tag(Base):
    """A book tag."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(7), default="#007bff", nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    books: Mapped[list["Book"]] = relationship(
        "Book",
        secondary=book_tags,
        back_populates="tags",
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
