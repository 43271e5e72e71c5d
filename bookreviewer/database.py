"""
Database Configuration Module

SQLAlchemy 2.0 setup for the Book Reviewer API.

We use SYNCHRONOUS SQLAlchemy with the "session per request" pattern:
1. Request arrives -> a new session is created
2. Every read and write of the request goes through that session
3. Services commit once, after the detail write AND its counter updates
4. The session is closed when the request ends

Because a service commits exactly once, a failure anywhere in the write
(including the counter updates) leaves nothing behind.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookreviewer.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# pool_size bounds the concurrent database work of the whole process.
# pool_pre_ping discards connections the server has closed.

_engine_kwargs = {"pool_pre_ping": True, "echo": False}
if not settings.database_url.startswith("sqlite"):
    _engine_kwargs.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )

engine = create_engine(settings.database_url, **_engine_kwargs)


# =============================================================================
# Session Factory
# =============================================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic reads Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Yields a session for the duration of one request. If the request fails
    with anything other than a handled application error, pending changes
    are rolled back before the session is closed.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Development and test helper. Production schemas are managed by Alembic.
    """
    Base.metadata.create_all(bind=engine)
