import pytest
from fastapi.testclient import TestClient

from todo_service.context import RequestContext
from todo_service.db import Database
from todo_service.main import create_app
from todo_service.service import TodoService
from todo_service.settings import Settings


@pytest.fixture
def settings(tmp_path):
    # Each test gets its own database file so ids start at 1.
    return Settings(sqlite_db_path=str(tmp_path / "data" / "todos.db"), request_timeout_seconds=5.0)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(settings):
    return Database(settings.sqlite_db_path)


@pytest.fixture
def service(db):
    return TodoService(db)


@pytest.fixture
def ctx():
    return RequestContext.background()
