"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. Every
test works under its own user id, so rows from other tests never leak
into an assertion.
"""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pulsebloom.core.deps import get_dispatcher, get_insight_generator
from pulsebloom.db.base import Base, get_db
from pulsebloom.main import app
from pulsebloom.services.notifications import NotificationDispatcher

SQLITE_URL = "sqlite:///./test_pulsebloom.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeGenerator:
    """Stands in for the language model; records every call."""

    def __init__(self, response: str = "[]"):
        self.response = response
        self.calls: list[tuple[str, str]] = []

    def __call__(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.response


class RecordingSender:
    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.sent = []
        self.attempts = 0

    def __call__(self, notification) -> None:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise ConnectionError("smtp down")
        self.sent.append(notification)


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def user_id() -> str:
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def make_generator():
    return FakeGenerator


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def dispatcher(sender) -> NotificationDispatcher:
    return NotificationDispatcher(sender=sender, max_attempts=1)


@pytest.fixture()
def client(db, generator, dispatcher):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_insight_generator] = lambda: generator
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def headers(user_id) -> dict:
    return {"X-User-Id": user_id}
