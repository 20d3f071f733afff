"""
Database connection and session management.

Timestamps are stored as naive UTC (see ``services.investments.as_naive_utc``);
the engine clock and the stored lock-in/maturity dates must agree on that.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from propvest.config import get_settings
from propvest.db.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """
    Build an engine for the investment store.

    PostgreSQL runs without a pool (serverless friendly). SQLite connections
    are shareable across threads and enforce the investment -> property and
    withdrawal -> investment foreign keys.
    """
    if database_url.startswith("postgresql"):
        return create_engine(database_url, poolclass=NullPool, echo=echo, **kwargs)

    db_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        echo=echo,
        **kwargs,
    )
    event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


settings = get_settings()
engine = create_db_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine):
    """Create the property, settings, investment and withdrawal tables."""
    Base.metadata.create_all(bind=bind)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session that commits on success, for seed scripts and other non-request callers."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
