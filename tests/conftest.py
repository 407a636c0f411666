# tests/conftest.py

from __future__ import annotations

import os

# Must be set before app.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEADLINE_SCANNER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, select

import app.models  # noqa: F401
from app.api import deps
from app.core.security import create_access_token
from app.db.session import engine
from app.main import app as fastapi_app
from app.models.notification import Notification
from app.models.user import User
from app.realtime.registry import ConnectionRegistry
from app.services.notifications import NotificationDispatcher
from app.services.tasks import TaskService

from .fakes import FakeMailer


@pytest.fixture()
def db() -> Iterator[Session]:
    """
    Fresh schema per test on the shared in-memory engine.

    The API under test uses the same engine, so rows created here are visible
    to requests and vice versa.
    """
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def dispatcher(db: Session, mailer: FakeMailer, registry: ConnectionRegistry) -> NotificationDispatcher:
    return NotificationDispatcher(db, mailer, registry)


@pytest.fixture()
def service(db: Session, dispatcher: NotificationDispatcher) -> TaskService:
    return TaskService(db, dispatcher)


@pytest.fixture()
def make_user(db: Session) -> Callable[..., User]:
    def _make(name: str, email: str | None = None) -> User:
        user = User(
            email=email or f"{name.lower()}@example.com",
            name=name,
            external_id=f"google-{name.lower()}",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def owner(make_user) -> User:
    return make_user("Olive")


@pytest.fixture()
def c1(make_user) -> User:
    return make_user("Carl")


@pytest.fixture()
def c2(make_user) -> User:
    return make_user("Cora")


@pytest.fixture()
def stranger(make_user) -> User:
    return make_user("Sam")


@pytest.fixture()
def client(db: Session, mailer: FakeMailer, registry: ConnectionRegistry) -> Iterator[TestClient]:
    fastapi_app.dependency_overrides[deps.get_mailer] = lambda: mailer
    fastapi_app.dependency_overrides[deps.get_registry] = lambda: registry
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def notifications(db: Session, **filters) -> list[Notification]:
    """All notification rows matching the filters, read fresh from the database."""
    db.expire_all()
    statement = select(Notification)
    for key, value in filters.items():
        statement = statement.where(getattr(Notification, key) == value)
    return list(db.exec(statement.order_by(Notification.id)).all())
