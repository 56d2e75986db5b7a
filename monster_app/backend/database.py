"""SQLAlchemy engine, session factory and declarative base."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings


def _engine_kwargs() -> dict:
    if not settings.database_url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if settings.is_memory_db:
        # One shared connection, otherwise each checkout sees an empty database.
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(settings.database_url, **_engine_kwargs())
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def init_db() -> None:
    """Create all tables that do not exist yet."""

    from .models import tables  # noqa: F401  registers the mapped classes

    Base.metadata.create_all(bind=engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session that is closed after the request."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
