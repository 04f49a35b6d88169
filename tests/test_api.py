"""Tests for the registry HTTP API."""

import pytest
from fastapi.testclient import TestClient

from roster.registry.service import RegistryService
from web.backend.app.main import app
from web.backend.app.middleware import identity
from web.backend.app.middleware.identity import get_service


@pytest.fixture
def client(tmp_path):
    service = RegistryService.open(tmp_path / "reg", creator="owner")
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(caller):
    return {"X-Caller-Identity": caller}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_register_new_and_read(client):
    resp = client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Alice"
    assert body["status"] == "Absent"
    assert body["registered"] is True

    assert client.get("/api/registry/profiles/alice/name").json()["name"] == "Alice"
    assert client.get("/api/registry/profiles/alice/status").json()["status"] == "Absent"
    assert client.get("/api/registry/profiles/alice/tags").json()["tags"] == []


def test_caller_header_required(client):
    resp = client.post("/api/registry/profiles/new", json={"name": "Alice"})
    assert resp.status_code == 401


def test_unregistered_reads_are_404(client):
    for path in ("", "/name", "/status", "/tags"):
        resp = client.get(f"/api/registry/profiles/nobody{path}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFound"


def test_register_new_twice_conflicts(client):
    client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    resp = client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    assert resp.status_code == 409
    assert resp.json()["error"] == "AlreadyExists"


def test_register_new_empty_name(client):
    resp = client.post("/api/registry/profiles/new", json={"name": ""}, headers=_as("alice"))
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidInput"


def test_bulk_register_keeps_order(client):
    resp = client.post(
        "/api/registry/profiles",
        json={"name": "Bob", "status": "Present", "tags": ["Chess", "Art"]},
        headers=_as("bob"),
    )
    assert resp.status_code == 201
    assert client.get("/api/registry/profiles/bob/tags").json()["tags"] == ["Chess", "Art"]


def test_tag_lifecycle(client):
    client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    for tag in ["a", "b", "c", "d", "e"]:
        resp = client.post("/api/registry/profiles/alice/tags", json={"tag": tag})
        assert resp.status_code == 201

    resp = client.post("/api/registry/profiles/alice/tags", json={"tag": "f"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "CapacityExceeded"

    resp = client.delete("/api/registry/profiles/alice/tags/b")
    assert resp.status_code == 200
    assert resp.json()["tags"] == ["a", "e", "c", "d"]

    resp = client.post("/api/registry/profiles/alice/tags", json={"tag": "a"})
    assert resp.json()["error"] == "DuplicateTag"

    resp = client.delete("/api/registry/profiles/alice/tags/zzz")
    assert resp.status_code == 404
    assert resp.json()["error"] == "TagNotFound"


def test_mark_status(client):
    client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    resp = client.put("/api/registry/profiles/alice/status", json={"status": "Present"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Present"

    resp = client.put("/api/registry/profiles/nobody/status", json={"status": "Present"})
    assert resp.status_code == 404


def test_transfer_ownership(client):
    resp = client.post("/api/registry/transfer", json={"new_identity": "alice"}, headers=_as("mallory"))
    assert resp.status_code == 403
    assert resp.json()["error"] == "Unauthorized"
    assert client.get("/api/registry/administrator").json()["administrator"] == "owner"

    resp = client.post("/api/registry/transfer", json={"new_identity": "alice"}, headers=_as("owner"))
    assert resp.status_code == 200
    assert resp.json()["administrator"] == "alice"

    resp = client.post("/api/registry/transfer", json={"new_identity": "owner"}, headers=_as("owner"))
    assert resp.status_code == 403


def test_raw_profiles_include_unnamed_records(client):
    client.post("/api/registry/profiles", json={"name": "", "tags": ["Chess"]}, headers=_as("ghost"))
    profiles = client.get("/api/registry/profiles").json()
    assert profiles == [
        {"identity": "ghost", "name": "", "status": "Absent", "tags": ["Chess"], "registered": False}
    ]


def test_events_endpoint(client):
    client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("alice"))
    client.post("/api/registry/profiles/alice/tags", json={"tag": "Chess"})

    events = client.get("/api/registry/events").json()
    assert [e["kind"] for e in events] == ["TagAdded", "ProfileCreated"]

    events = client.get("/api/registry/events", params={"kind": "TagAdded"}).json()
    assert events[0]["data"] == {"tag": "Chess"}

    resp = client.get("/api/registry/events", params={"kind": "Bogus"})
    assert resp.status_code == 400


def test_get_service_reads_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ROSTER_REGISTRY_DIR", str(tmp_path / "env-reg"))
    monkeypatch.setenv("ROSTER_ADMIN", "env-owner")
    monkeypatch.setattr(identity, "_service", None)

    service = get_service()
    assert service.administrator == "env-owner"
    assert get_service() is service


def test_caller_identity_is_used_as_sent(client):
    resp = client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as(" alice"))
    assert resp.status_code == 201

    identities = [p["identity"] for p in client.get("/api/registry/profiles").json()]
    assert identities == [" alice"]
    assert client.get("/api/registry/profiles/%20alice/name").json()["name"] == "Alice"
    assert client.get("/api/registry/profiles/alice").status_code == 404


def test_blank_caller_header_rejected(client):
    resp = client.post("/api/registry/profiles/new", json={"name": "Alice"}, headers=_as("   "))
    assert resp.status_code == 401


def test_openapi_documents_error_body(client):
    schema = client.get("/openapi.json").json()
    assert "ErrorResponse" in schema["components"]["schemas"]

    conflict = schema["paths"]["/api/registry/profiles/new"]["post"]["responses"]["409"]
    ref = conflict["content"]["application/json"]["schema"]["$ref"]
    assert ref.endswith("/ErrorResponse")
