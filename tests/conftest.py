"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.main import create_app
from app.services.customer_resolver import CustomerResolver
from app.services.customer_store import CustomerStore
from app.services.session_guard import AdminSessionGuard
from app.services.session_store import InMemorySessionStore

ADMIN_PASSWORD = "letmein-admin"


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 15, 18, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite:///{tmp_path / 'loyalty_test.db'}",
        "admin_password": ADMIN_PASSWORD,
        "secret_key": "test-secret",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def session_factory(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db) -> CustomerStore:
    return CustomerStore(db)


@pytest.fixture
def resolver(store, settings) -> CustomerResolver:
    return CustomerResolver(store, settings)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def guard(settings, clock) -> AdminSessionGuard:
    return AdminSessionGuard(InMemorySessionStore(), settings, clock=clock)


@pytest.fixture
def app(settings):
    application = create_app(settings)
    yield application
    application.dependency_overrides.clear()
    application.state.engine.dispose()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_client(client) -> TestClient:
    """Client holding a valid admin session cookie."""
    resp = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client
