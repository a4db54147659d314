import json

from fastapi.testclient import TestClient

from app.main import create_app
from app.services.student_store import StudentStore
from app.storage import InMemoryRepository

from helpers import FakeGateway

JANE = {"studentID": "2025-001", "fullName": "Jane Doe"}


def test_list_starts_empty(client):
    resp = client.get("/students")
    assert resp.status_code == 200
    assert resp.json() == []


def test_create_lenient_stores_record_verbatim(client, mirror_path):
    resp = client.post("/students", json=JANE)

    assert resp.status_code == 201
    assert resp.json() == JANE
    assert client.get("/students").json() == [JANE]
    assert json.loads(mirror_path.read_text(encoding="utf-8")) == [JANE]


def test_create_strict_requires_all_fields():
    app = create_app(store=StudentStore(InMemoryRepository(), strict=True), gateway=FakeGateway())
    client = TestClient(app)

    resp = client.post("/students", json=JANE)

    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"
    assert "required" in resp.json()["error"]


def test_create_missing_required_field(client):
    resp = client.post("/students", json={"fullName": "Jane Doe"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "studentID is required.", "kind": "ValidationError"}


def test_create_rejects_bad_email(client):
    resp = client.post("/students", json={**JANE, "gmail": "not-an-email"})
    assert resp.status_code == 400
    assert "gmail" in resp.json()["error"]


def test_create_rejects_non_string_field(client):
    resp = client.post("/students", json={"studentID": 2025, "fullName": "Jane Doe"})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"
    assert resp.json()["error"].startswith("studentID")


def test_create_duplicate_returns_409(client):
    client.post("/students", json=JANE)

    resp = client.post("/students", json={**JANE, "fullName": "Other"})

    assert resp.status_code == 409
    assert resp.json() == {"error": "Student with this ID already exists.", "kind": "DuplicateKeyError"}
    assert len(client.get("/students").json()) == 1


def test_delete_returns_removed_record(client):
    client.post("/students", json=JANE)

    resp = client.delete("/students/2025-001")

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "removed": JANE}
    assert client.get("/students").json() == []


def test_delete_unknown_returns_404(client):
    resp = client.delete("/students/2025-404")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Student not found.", "kind": "NotFoundError"}


def test_unmatched_route_returns_json_404(client):
    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_request_id_header_is_set(client):
    resp = client.get("/students")
    assert resp.headers["X-Request-ID"]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json()["status"] == "healthy"
