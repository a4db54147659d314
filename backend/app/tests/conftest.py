import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.student_store import StudentStore
from app.storage import JsonFileRepository

from helpers import FakeGateway


@pytest.fixture
def mirror_path(tmp_path):
    return tmp_path / "data" / "students.json"


@pytest.fixture
def store(mirror_path):
    return StudentStore(JsonFileRepository(str(mirror_path)))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(store, gateway):
    app = create_app(store=store, gateway=gateway)
    return TestClient(app)
