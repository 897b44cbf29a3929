"""
Shared fixtures: every test gets its own in-memory SQLite engine, injected into
the application factory so the lifespan never touches the configured database.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import Settings
from app.main import create_app

USER_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
OTHER_USER_ID = "9b2c1e4a-7d3f-4c1a-8e5b-0f6a2d9c3b71"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def app(engine):
    return create_app(settings=Settings(database_url="sqlite://", log_level="WARNING"), engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_subscription(client):
    """Create a subscription through the API and return its JSON."""

    def _make(**overrides):
        payload = {
            "service_name": "Netflix",
            "price": 999,
            "user_id": USER_ID,
            "start_date": "01-2024",
        }
        payload.update(overrides)
        response = client.post("/subscriptions", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
