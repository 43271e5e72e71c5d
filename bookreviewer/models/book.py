"""
Book Model

Books are the subject of reviews. A book carries two denormalized aggregates
maintained by services.counters:
- total_reviews: number of review rows for the book (any status)
- average_rating: mean rating over APPROVED reviews, 0.00 when there are none

This file also holds the book_tags association table linking books to tags.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreviewer.database import Base

if TYPE_CHECKING:
    from bookreviewer.models.review import Review
    from bookreviewer.models.tag import Tag


# =============================================================================
# Association Tables
# =============================================================================
book_tags = Table(
    "book_tags",
    Base.metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        nullable=False,
    ),
    UniqueConstraint("book_id", "tag_id", name="uq_book_tag"),
)


class Book(Base):
    """
    Book model.

    Table: books

    Books are created by any authenticated user and hard-deleted by admins,
    taking their reviews (and everything hanging off them) with them.
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    isbn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    publish_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # -------------------------------------------------------------------------
    # Denormalized Aggregates
    # -------------------------------------------------------------------------
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Numeric(3, 2) holds 0.00 - 5.00
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2),
        default=Decimal("0.00"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[list["Tag"]] = relationship(
        "Tag",
        secondary=book_tags,
        back_populates="books",
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author='{self.author}')>"
