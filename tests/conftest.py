from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from weatherhub.config import Settings
from weatherhub.db import make_engine
from weatherhub.main import create_app
from weatherhub.storage import SqlStore


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> SqlStore:
    store = SqlStore(engine)
    store.init()
    return store


@pytest.fixture
def client(store):
    app = create_app(store, Settings(database_url="sqlite://"))
    with TestClient(app) as client:
        yield client


@pytest.fixture
def berlin(client) -> dict:
    response = client.post("/api/cities", json={"name": "Berlin"})
    assert response.status_code == 200
    return response.json()
