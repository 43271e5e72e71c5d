#!/usr/bin/env python3
"""
Database Seed Script

Populates a development database with an admin, a few readers, the default
tags, sample books and some reviews, likes and comments.

USAGE:
    python scripts/seed_data.py            # keep existing rows
    python scripts/seed_data.py --clear    # wipe everything first

Reviews, likes and comments go through the service layer so every counter
and average rating ends up consistent.
"""

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from bookreviewer.database import SessionLocal, create_tables
from bookreviewer.models import (
    Book,
    ReviewComment,
    ReviewLike,
    Review,
    SystemLog,
    Tag,
    User,
    UserFavorite,
    UserRole,
    book_tags,
)
from bookreviewer.models.user import default_privacy_settings
from bookreviewer.services import comments, likes, reviews
from bookreviewer.services.security import hash_password
from bookreviewer.services.tags import ensure_default_tags

ADMIN = ("admin@example.com", "admin", "Admin12345")
READERS = [
    ("alice@example.com", "alice", "Reader12345"),
    ("bob@example.com", "bob", "Reader12345"),
    ("carol@example.com", "carol", "Reader12345"),
]

BOOKS = [
    {
        "title": "1984",
        "author": "George Orwell",
        "isbn": "9780451524935",
        "publish_year": 1949,
        "publisher": "Secker & Warburg",
        "description": "A dystopian novel about totalitarianism and surveillance.",
        "tags": ["Fiction", "Literature"],
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "isbn": "9780141439518",
        "publish_year": 1813,
        "publisher": "T. Egerton",
        "description": "Elizabeth Bennet and Mr. Darcy, manners and marriage.",
        "tags": ["Fiction", "Literature"],
    },
    {
        "title": "Sapiens",
        "author": "Yuval Noah Harari",
        "isbn": "9780062316097",
        "publish_year": 2011,
        "publisher": "Harper",
        "description": "A brief history of humankind.",
        "tags": ["History", "Science"],
    },
    {
        "title": "Thinking, Fast and Slow",
        "author": "Daniel Kahneman",
        "isbn": "9780374533557",
        "publish_year": 2011,
        "publisher": "Farrar, Straus and Giroux",
        "description": "The two systems that drive the way we think.",
        "tags": ["Psychology", "Science"],
    },
    {
        "title": "The Pragmatic Programmer",
        "author": "David Thomas",
        "isbn": "9780135957059",
        "publish_year": 1999,
        "publisher": "Addison-Wesley",
        "description": "From journeyman to master.",
        "tags": ["Technology"],
    },
]

# (reader index, book index, rating, title, content)
REVIEWS = [
    (0, 0, 5, "Chilling and timeless", "Every rereading finds something new to worry about."),
    (1, 0, 4, "Still relevant", "Dense in places but the ideas stay with you."),
    (0, 2, 4, "Big picture history", "Sweeping and provocative, if occasionally glib."),
    (2, 3, 5, "Changed how I decide", "The chapters on anchoring alone are worth it."),
    (1, 4, 5, "Every developer should read it", "Practical advice that has aged well."),
]


def clear_data(db: Session) -> None:
    """Delete every row, children first."""
    print("Clearing existing data...")
    for table in (ReviewComment, ReviewLike, UserFavorite, Review, SystemLog):
        db.execute(delete(table))
    db.execute(delete(book_tags))
    for table in (Book, Tag, User):
        db.execute(delete(table))
    db.commit()
    print("Data cleared.")


def get_or_create_user(db: Session, email: str, username: str, password: str, role: str) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(
            email=email,
            username=username,
            hashed_password=hash_password(password),
            role=role,
            privacy_settings=default_privacy_settings(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def create_books(db: Session) -> list[Book]:
    print("Creating books...")
    tags = {tag.name: tag for tag in db.execute(select(Tag)).scalars()}
    books = []
    for data in BOOKS:
        data = dict(data)
        tag_names = data.pop("tags")
        book = db.execute(
            select(Book).where(Book.title == data["title"], Book.author == data["author"])
        ).scalar_one_or_none()
        if book is None:
            book = Book(**data)
            book.tags = [tags[name] for name in tag_names if name in tags]
            for name in tag_names:
                if name in tags:
                    tags[name].usage_count += 1
            db.add(book)
        books.append(book)
    db.commit()
    print(f"{len(books)} books ready.")
    return books


def create_activity(db: Session, readers: list[User], books: list[Book]) -> int:
    """Reviews, likes and a comment thread. Returns the number of new reviews."""
    print("Creating reviews, likes and comments...")
    created = []
    for reader_index, book_index, rating, title, content in REVIEWS:
        reader, book = readers[reader_index], books[book_index]
        exists = db.execute(
            select(Review.id).where(Review.user_id == reader.id, Review.book_id == book.id)
        ).first()
        if exists:
            continue
        created.append(reviews.create_review(db, reader, book.id, title, content, rating))

    for review in created:
        for reader in readers:
            if reader.id != review.user_id:
                likes.like_review(db, reader, review.id)

    if created:
        first = comments.create_comment(db, readers[1], created[0].id, "Completely agree with this.")
        comments.reply_to_comment(db, readers[0], first["id"], "Thanks, glad it resonated!")

    return len(created)


def seed_database(clear_existing: bool = False) -> None:
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        ensure_default_tags(db)
        admin = get_or_create_user(db, *ADMIN, role=UserRole.ADMIN.value)
        readers = [get_or_create_user(db, *reader, role=UserRole.USER.value) for reader in READERS]
        books = create_books(db)
        new_reviews = create_activity(db, readers, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Admin: {admin.email} / {ADMIN[2]}")
        print(f"  - Readers: {len(readers)}")
        print(f"  - Books: {len(books)}")
        print(f"  - New reviews: {new_reviews}")
        print("\nAPI documentation at http://localhost:3000/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the book reviewer database")
    parser.add_argument("--clear", action="store_true", help="Delete existing data first")
    args = parser.parse_args()
    seed_database(clear_existing=args.clear)
