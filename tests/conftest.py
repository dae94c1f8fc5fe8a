# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from parley.api.v1.dependencies import get_notifier_dep, get_registry_dep
from parley.core.security import create_access_token
from parley.db.session import Base
from parley.db.session import get_db as app_get_session
from parley.main import app as fastapi_app
from parley.models import User
from parley.repositories.conversation_repo import ConversationRepository
from parley.repositories.message_repo import MessageRepository
from parley.repositories.user_repo import UserRepository
from parley.services.conversation_service import ConversationService
from parley.services.message_service import MessageService
from parley.services.notifier import ConnectionRegistry, NotificationEvent, Notifier

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


class RecordingNotifier(Notifier):
    """Notifier that keeps every published event for later inspection."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    async def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [event.type.value for event in self.events]


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
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Repositories commit, so wipe every table between tests.
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
def registry(app: FastAPI) -> Iterator[ConnectionRegistry]:
    """Give each test its own registry of live connections."""
    fresh = ConnectionRegistry(queue_size=16)
    app.dependency_overrides[get_registry_dep] = lambda: fresh
    try:
        yield fresh
    finally:
        app.dependency_overrides.pop(get_registry_dep, None)


@pytest.fixture()
def recorded_events(app: FastAPI) -> Iterator[RecordingNotifier]:
    """Capture events published by request-scoped services."""
    notifier = RecordingNotifier()
    app.dependency_overrides[get_notifier_dep] = lambda: notifier
    try:
        yield notifier
    finally:
        app.dependency_overrides.pop(get_notifier_dep, None)


@pytest.fixture()
def client(app: FastAPI, registry: ConnectionRegistry) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with unique emails."""

    def _make_user(name: str | None = None) -> User:
        n = next(_USER_COUNTER)
        display_name = name or f"User {n}"
        user = User(
            name=display_name,
            email=f"{display_name.lower().replace(' ', '.')}.{n}@example.com",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("Bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("Carol")


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    return auth_headers(bob)


@pytest.fixture()
def carol_headers(carol: User) -> dict[str, str]:
    return auth_headers(carol)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def conversation_service(db_session: Session, notifier: RecordingNotifier) -> ConversationService:
    return ConversationService(
        conversations=ConversationRepository(db_session),
        messages=MessageRepository(db_session),
        users=UserRepository(db_session),
        notifier=notifier,
    )


@pytest.fixture()
def message_service(db_session: Session, notifier: RecordingNotifier) -> MessageService:
    return MessageService(
        messages=MessageRepository(db_session),
        conversations=ConversationRepository(db_session),
        notifier=notifier,
    )
