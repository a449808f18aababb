"""
Database session management for hstrack.

Provides SQLAlchemy engine and session factory with proper
connection pooling configuration. Uses the settings from config.py.

Usage:
    # As a context manager (recommended for scripts)
    from hstrack.db import get_session

    with get_session() as session:
        player = find_player(session, "zezima")
        # Commits automatically on exit, rolls back on exception

    # As a dependency injection (for FastAPI)
    from hstrack.db.session import get_db

    @app.get("/api/names/{id}")
    def details(id: int, db: Session = Depends(get_db)):
        ...

Note that services owning their own transaction boundary (the name change
transfer) commit and roll back on the session they are given; get_session's
final commit is then a no-op.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from hstrack.config import settings


def get_engine():
    """
    Create SQLAlchemy engine with connection pooling.

    The engine is configured with:
    - Connection pool for efficient reuse
    - Echo mode disabled (set LOG_LEVEL=DEBUG for SQL logging)
    - Pre-ping to verify connections before use (handles stale connections)
    """
    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )


# Session factory - bound lazily so importing this module never connects
SessionLocal = sessionmaker(
    autocommit=False,  # Commits are explicit
    autoflush=False,  # Don't auto-flush before queries (more control)
)

_engine = None


def _get_engine():
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
        SessionLocal.configure(bind=_engine)
    return _engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    _get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Use this with FastAPI's Depends() for request-scoped sessions.
    Closing the session rolls back anything left uncommitted.
    """
    _get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
