"""Database engine, per-request sessions and small dialect-aware helpers."""

import zlib
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from calmato.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts: rolled back on error, always closed."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def lock_key(db: Session, key: str) -> None:
    """
    Serialize writers on `key` until the current transaction ends.

    On PostgreSQL this takes a transaction-scoped advisory lock; other
    dialects (SQLite in tests) already serialize writes, so it is a no-op.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    # Advisory locks take a signed 64-bit key; crc32 fits comfortably.
    db.execute(
        text("SELECT pg_advisory_xact_lock(:key)"),
        {"key": zlib.crc32(key.encode("utf-8"))},
    )
