"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.
"""

from collections.abc import Generator
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL, settings


def _calculate_pool_size() -> int:
    """(2 * CPU cores) + 1, capped at 20."""
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _build_engine(url: str) -> Engine:
    """
    Create the engine for the configured URL.

    PostgreSQL gets a sized pool with timeouts. SQLite (local runs and tests)
    gets a single shared connection for in-memory databases.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=settings.db_echo, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=_calculate_pool_size(),
        max_overflow=15,
        pool_timeout=30,  # Wait max 30s for connection from pool
        pool_recycle=1800,  # Recycle connections after 30 minutes
        connect_args={"connect_timeout": 10},
        echo=settings.db_echo,
    )


engine = _build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/orders")
        def list_orders(db: Session = Depends(get_db)):
            ...

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
