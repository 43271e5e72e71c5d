"""
Book Service

Book catalogue operations.

- Any authenticated user may add or edit a book.
- A (title, author) pair may only exist once.
- Only admins delete books. Deletion follows HardDelete(cascade=True): the
  book's reviews go too, along with their likes, favorites and comments, and
  the review authors' counters are brought back in line.
"""

import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from bookreviewer.exceptions import ConflictError, NotFoundError, ValidationError
from bookreviewer.models.book import Book, book_tags
from bookreviewer.models.comment import ReviewComment
from bookreviewer.models.favorite import UserFavorite
from bookreviewer.models.like import ReviewLike
from bookreviewer.models.review import Review
from bookreviewer.models.user import User
from bookreviewer.services import audit, counters
from bookreviewer.services.deletion import HardDelete, policy_for
from bookreviewer.services.permissions import Action, ensure_allowed

logger = logging.getLogger(__name__)


def get_book(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError("Book", code="BOOK_NOT_FOUND")
    return book


def _find_duplicate(db: Session, title: str, author: str, exclude_id: int | None = None) -> Book | None:
    stmt = select(Book).where(Book.title == title, Book.author == author)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    return db.execute(stmt).scalars().first()


def create_book(db: Session, actor: User, data: dict) -> Book:
    """
    Add a book to the catalogue.

    Raises:
        ConflictError: a book with the same title and author exists; the
            existing book's id and title are returned in `data`
    """
    ensure_allowed(actor, Action.CREATE, Book)

    duplicate = _find_duplicate(db, data["title"], data["author"])
    if duplicate is not None:
        raise ConflictError(
            "A book with this title and author already exists",
            code="BOOK_EXISTS",
            data={"existing_book": {"id": duplicate.id, "title": duplicate.title}},
        )

    book = Book(**data)
    db.add(book)
    db.commit()
    db.refresh(book)

    logger.info(f"Book created: {book.id} '{book.title}' by user {actor.id}")
    return book


def update_book(db: Session, actor: User, book_id: int, changes: dict) -> Book:
    """Edit book metadata. Aggregates are never accepted from clients."""
    book = get_book(db, book_id)
    ensure_allowed(actor, Action.UPDATE, book)

    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ValidationError("No fields to update", code="NO_UPDATE_FIELDS")

    title = changes.get("title", book.title)
    author = changes.get("author", book.author)
    if _find_duplicate(db, title, author, exclude_id=book.id) is not None:
        raise ConflictError("A book with this title and author already exists", code="BOOK_EXISTS")

    for field, value in changes.items():
        setattr(book, field, value)
    db.commit()
    db.refresh(book)

    logger.info(f"Book updated: {book_id} by user {actor.id}")
    return book


def delete_book(db: Session, actor: User, book_id: int) -> int:
    """
    Hard-delete a book and everything under it (admin only).

    Returns:
        Number of reviews deleted with the book
    """
    book = get_book(db, book_id)
    ensure_allowed(actor, Action.DELETE, book, "Only administrators can delete books")

    policy = policy_for("book")
    if not (isinstance(policy, HardDelete) and policy.cascade):
        raise ConflictError("Books cannot be deleted", code="DELETE_NOT_ALLOWED")

    reviews = db.execute(
        select(Review.id, Review.user_id, Review.likes_count).where(Review.book_id == book_id)
    ).all()
    review_ids = [row.id for row in reviews]

    counters.on_book_removed(db, [(row.user_id, row.likes_count) for row in reviews])

    if review_ids:
        db.execute(delete(ReviewComment).where(ReviewComment.review_id.in_(review_ids)))
        db.execute(delete(ReviewLike).where(ReviewLike.review_id.in_(review_ids)))
        db.execute(delete(UserFavorite).where(UserFavorite.review_id.in_(review_ids)))
        db.execute(delete(Review).where(Review.id.in_(review_ids)))
    db.execute(delete(book_tags).where(book_tags.c.book_id == book_id))
    db.execute(delete(Book).where(Book.id == book_id))

    audit.record_event(
        db,
        audit.DELETE_BOOK,
        user_id=actor.id,
        target_type="book",
        target_id=book_id,
        details={"title": book.title, "deleted_reviews": len(review_ids)},
    )
    db.commit()

    logger.info(f"Book {book_id} deleted by admin {actor.id} with {len(review_ids)} reviews")
    return len(review_ids)


def list_books(db: Session, *, skip: int, limit: int, q: str | None = None) -> tuple[list[Book], int]:
    """Page of books, newest first, optionally filtered by a title/author substring."""
    conditions = []
    if q:
        pattern = f"%{q.strip()}%"
        conditions.append(or_(Book.title.ilike(pattern), Book.author.ilike(pattern)))

    total = db.execute(select(func.count(Book.id)).where(*conditions)).scalar() or 0
    stmt = (
        select(Book)
        .where(*conditions)
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all()), total
