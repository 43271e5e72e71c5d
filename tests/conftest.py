"""
pytest Fixtures for the Book Reviewer API Tests

Database isolation:
===================
- One SQLite in-memory engine per test session (StaticPool keeps the single
  connection, and with it the database, alive)
- Every test runs inside an outer transaction that is rolled back at the end.
  The session joins it with join_transaction_mode="create_savepoint", so a
  service commit() only releases a SAVEPOINT and a service rollback() only
  undoes its own work, never the fixtures' rows

Because the session is shared by the fixtures and by every request a test
makes, refresh ORM objects (db_session.refresh(obj)) before asserting on
counters that were changed through the API.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# Environment variables must be set BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookreviewer.database import Base, get_db
from bookreviewer.main import app
from bookreviewer.models import Book, Review, Tag, User, UserRole
from bookreviewer.models.user import default_privacy_settings
from bookreviewer.services import reviews as review_service
from bookreviewer.services.security import hash_password

# bcrypt is slow on purpose; hash the shared test passwords once
PASSWORD = "SecurePass123"
PASSWORD_HASH = hash_password(PASSWORD)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture(scope="session")
def engine():
    """SQLite in-memory engine with every table created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; take over so SAVEPOINTs nest properly
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """A session whose work is rolled back after each test."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client wired to the test session."""

    def override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
def make_user(
    db_session: Session,
    username: str,
    role: str = UserRole.USER.value,
    privacy: dict | None = None,
) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=PASSWORD_HASH,
        role=role,
        privacy_settings=privacy or default_privacy_settings(),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """A regular reader; authors sample_review."""
    return make_user(db_session, "testuser")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Another reader, for ownership and self-like scenarios."""
    return make_user(db_session, "seconduser")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin", role=UserRole.ADMIN.value)


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    book = Book(
        title="1984",
        author="George Orwell",
        isbn="9780451524935",
        description="A dystopian novel set in a totalitarian society.",
        publish_year=1949,
        publisher="Secker & Warburg",
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def sample_review(db_session: Session, sample_book: Book, sample_user: User) -> Review:
    """An approved 4-star review by sample_user, created through the service."""
    review = review_service.create_review(
        db_session,
        sample_user,
        book_id=sample_book.id,
        title="Great book!",
        content="I really enjoyed reading this book.",
        rating=4,
    )
    db_session.refresh(review)
    return review


@pytest.fixture
def sample_tag(db_session: Session) -> Tag:
    tag = Tag(name="Fiction", description="Novels and short stories", color="#007bff")
    db_session.add(tag)
    db_session.commit()
    db_session.refresh(tag)
    return tag
