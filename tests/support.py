"""In-memory SQLite database shared by service, API and CLI tests."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from calmato.models import Base


def make_session_factory() -> sessionmaker:
    """Fresh schema in a single shared in-memory connection (usable across threads)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)
