# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from whatswho.api.v1.dependencies import create_access_token, get_presence_directory_dep
from whatswho.db.session import Base
from whatswho.db.session import get_db as app_get_session
from whatswho.main import app as fastapi_app
from whatswho.models import Message, User
from whatswho.services.connections import ConnectionHandle
from whatswho.services.presence import PresenceDirectory

TEST_DB_URL = "sqlite://"

ALICE = "a@x.com"
BOB = "b@x.com"
CAROL = "c@x.com"


class RecordingHandle(ConnectionHandle):
    """In-memory connection handle that records every frame pushed to it."""

    def __init__(self, connection_id: str | None = None, *, fail: bool = False) -> None:
        super().__init__(connection_id)
        self.frames: list[dict[str, Any]] = []
        self.fail = fail

    async def send_frame(self, frame: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("connection reset by peer")
        self.frames.append(frame)

    def events(self, name: str) -> list[Any]:
        """Return the ``data`` of every recorded frame named ``name``."""
        return [frame["data"] for frame in self.frames if frame["event"] == name]


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def directory() -> PresenceDirectory:
    """Provide an empty presence directory for each test."""
    return PresenceDirectory()


@pytest.fixture(autouse=True)
def override_presence_dependency(app: FastAPI, directory: PresenceDirectory) -> Iterator[None]:
    app.dependency_overrides[get_presence_directory_dep] = lambda: directory
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_presence_directory_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def handle_factory() -> Callable[..., RecordingHandle]:
    """Return a factory producing recording connection handles."""

    def _make(connection_id: str | None = None, *, fail: bool = False) -> RecordingHandle:
        return RecordingHandle(connection_id, fail=fail)

    return _make


def _create_user(db_session: Session, email: str, nickname: str | None = None) -> User:
    user = User(email=email, nickname=nickname)
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    return user


@pytest.fixture()
def alice(db_session: Session) -> User:
    """Create and return the primary test user."""
    return _create_user(db_session, ALICE, "Alice")


@pytest.fixture()
def bob(db_session: Session) -> User:
    """Create and return the secondary test user."""
    return _create_user(db_session, BOB, "Bob")


@pytest.fixture()
def carol(db_session: Session) -> User:
    """Create and return a third user who is party to nothing by default."""
    return _create_user(db_session, CAROL)


def auth_headers(email: str) -> dict[str, str]:
    token = create_access_token(email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice_auth(alice: User) -> dict[str, str]:
    """Return authorization headers for alice."""
    return auth_headers(alice.email)


@pytest.fixture()
def bob_auth(bob: User) -> dict[str, str]:
    """Return authorization headers for bob."""
    return auth_headers(bob.email)


@pytest.fixture()
def carol_auth(carol: User) -> dict[str, str]:
    """Return authorization headers for carol."""
    return auth_headers(carol.email)


@pytest.fixture()
def message_from_alice(db_session: Session, alice: User, bob: User) -> Message:
    """Create a message sent by alice to bob."""
    message = Message(sender=alice.email, recipient=bob.email, body="hello bob")
    db_session.add(message)
    db_session.flush()
    db_session.refresh(message)
    return message
