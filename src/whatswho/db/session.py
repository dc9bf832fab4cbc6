"""Engine and session factory for the chat store.

Requests and WebSocket handlers share one synchronous engine; each unit of
work gets its own :class:`~sqlalchemy.orm.Session` from :func:`get_db`.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from whatswho.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for users, messages and tombstones."""


# Registers the mapped classes on Base.metadata.
import whatswho.models  # noqa: E402,F401


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.sql_debug}
    if make_url(url).get_backend_name() == "sqlite":
        # WebSocket handlers and threadpool endpoints touch the same file.
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_engine(
    settings.effective_database_url,
    **_engine_options(settings.effective_database_url),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a session that is closed once the request or socket ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create the chat tables without going through Alembic."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    Base.metadata.drop_all(bind=engine)
