# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from ama_global.api.v1.dependencies import get_key_value_storage, get_offline_mode
from ama_global.core.notices import Notifier
from ama_global.core.settings import settings
from ama_global.db.session import Base
from ama_global.db.session import get_db as app_get_session
from ama_global.main import app as fastapi_app
from ama_global.models import Profile
from ama_global.storage.kv import MemoryStorage
from ama_global.storage.local import LocalStore
from ama_global.storage.remote import RemoteStore
from ama_global.storage.session_store import SessionStore

TEST_DB_URL = "sqlite://"
TEST_JWT_SECRET = "test-jwt-secret"

_USER_COUNTER = count(1)


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
    # Stores commit and roll back for real, so tests clean up by deleting rows.
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def kv_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    kv_storage: MemoryStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_key_value_storage] = lambda: kv_storage
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_key_value_storage, None)


@pytest.fixture()
def online(app: FastAPI, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Serve requests from the relational store and verify tokens locally."""
    monkeypatch.setattr(settings, "remote_jwt_secret", TEST_JWT_SECRET)
    app.dependency_overrides[get_offline_mode] = lambda: False
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_offline_mode, None)


@pytest.fixture()
def offline(app: FastAPI) -> Iterator[None]:
    """Serve requests from the local store regardless of configuration."""
    app.dependency_overrides[get_offline_mode] = lambda: True
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_offline_mode, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    # Not entered as a context manager: startup would create tables on the real engine.
    yield TestClient(app, base_url="http://test")


@pytest.fixture()
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture()
def local_store(kv_storage: MemoryStorage) -> LocalStore:
    return LocalStore(kv_storage)


@pytest.fixture()
def remote_store(db_session: Session) -> RemoteStore:
    return RemoteStore(db_session)


@pytest.fixture()
def session_store(kv_storage: MemoryStorage) -> SessionStore:
    return SessionStore(kv_storage)


@pytest.fixture()
def make_profile(db_session: Session) -> Callable[..., Profile]:
    """Return a factory that persists profiles with unique usernames."""

    def _make(username: str | None = None, **fields: Any) -> Profile:
        number = next(_USER_COUNTER)
        username = username or f"user{number}"
        profile = Profile(
            id=fields.pop("id", f"user-{number}"),
            email=fields.pop("email", f"{username}@example.com"),
            username=username,
            **fields,
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def test_user(make_profile: Callable[..., Profile]) -> Profile:
    """Create and return the primary persisted profile."""
    return make_profile("alice")


@pytest.fixture()
def other_user(make_profile: Callable[..., Profile]) -> Profile:
    """Create and return a second persisted profile."""
    return make_profile("bob")


def create_access_token(user_id: str) -> str:
    return jwt.encode(
        {"sub": user_id, "aud": settings.remote_jwt_audience, "role": "authenticated"},
        TEST_JWT_SECRET,
        algorithm="HS256",
    )


@pytest.fixture()
def auth_token(online: None, test_user: Profile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture()
def other_auth_token(online: None, other_user: Profile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture()
def moderator_token(online: None, make_profile: Callable[..., Profile]) -> dict[str, str]:
    """Return authorization headers for a moderator."""
    moderator = make_profile("mod", is_moderator=True)
    return {"Authorization": f"Bearer {create_access_token(moderator.id)}"}
