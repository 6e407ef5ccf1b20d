import pytest
from fastapi.testclient import TestClient

from postapi.config import Settings
from postapi.db.store import open_store
from postapi.main import create_app


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", read_attempts=3, _env_file=None)


@pytest.fixture
def store(settings):
    store = open_store(settings)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client
