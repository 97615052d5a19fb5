"""Test configuration and fixtures for the PingCode backend tests."""

import os
import sys
import pathlib
import pytest
from unittest.mock import patch


from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Set test environment before importing backend modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test_secret_key"
os.environ["TESTING_MODE"] = "True"


@pytest.fixture(autouse=True, scope="session")
def anyio_backend():  # pragma: no cover
    return "asyncio"


@pytest.fixture(autouse=True)
def test_engine():
    """Create a test database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Ensure models are imported so tables are registered in SQLModel.metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def test_session(test_engine):
    """Create a test database session."""
    with Session(test_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def override_get_session(test_session):
    """Override the get_session dependency for testing."""

    def _override_get_session():
        yield test_session

    return _override_get_session


@pytest.fixture
def test_app(override_get_session):
    """Create a test FastAPI application."""
    # Skip the migrations for the whole life of the app
    with patch("app.update_database"):
        from app import create_app

        app = create_app()
        from models.common import get_session

        app.dependency_overrides[get_session] = override_get_session
        yield app
        del app.dependency_overrides[get_session]


@pytest.fixture
def client(test_app):
    """Create a test client."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def presence(test_app, client):
    """The registry of the running test app"""
    return test_app.state.presence


def _make_user(session: Session, username: str, friend_code: str, password="secret"):
    from models.auth import User
    from services.security import hash_password

    user = User(
        username=username,
        password_hash=hash_password(password),
        friend_code=friend_code,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def alice(test_session):
    return _make_user(test_session, "alice", "ABC123")


@pytest.fixture
def bob(test_session):
    return _make_user(test_session, "bob", "BOB456")


@pytest.fixture
def carol(test_session):
    return _make_user(test_session, "carol", "CAR789")


@pytest.fixture
def friends(test_session, alice, bob):
    """alice and bob are friends"""
    from services.friendship import make_friends

    make_friends(test_session, alice.id, bob.id)
    return alice, bob


def _auth_headers(user) -> dict[str, str]:
    from services.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def make_user(test_session):
    """Factory: make_user("dave", "DAV000")"""

    def factory(username, friend_code, password="secret"):
        return _make_user(test_session, username, friend_code, password)

    return factory


@pytest.fixture
def auth_headers():
    return _auth_headers


class FakeConnection:
    """Stands in for a websocket: records every pushed event"""

    def __init__(self, name="conn", fail=False):
        self.name = name
        self.fail = fail
        self.events: list[tuple[str, dict]] = []

    async def send_event(self, event, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.events.append((event.value, data))

    def named(self, event: str) -> list[dict]:
        return [data for name, data in self.events if name == event]

    def __repr__(self):
        return f"<FakeConnection {self.name}>"


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture(autouse=True)
def reset_database_state(test_session):
    """Reset database state after each test."""
    yield
    # Handle any pending rollbacks first
    try:
        if test_session.in_transaction():
            test_session.rollback()

        # Clean up all tables after each test using proper SQLAlchemy text() function
        from sqlalchemy import text

        for table in reversed(SQLModel.metadata.sorted_tables):
            try:
                test_session.execute(text(f"DELETE FROM {table.name}"))
                test_session.commit()
            except Exception:
                test_session.rollback()
    except Exception:
        # If session is in bad state, just pass
        pass
