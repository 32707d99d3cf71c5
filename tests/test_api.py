"""Summary: API integration tests.

Importance: Validates FastAPI endpoints against core workflows.
Alternatives: Use manual curl testing only.
"""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from smartlist.api import create_app
from smartlist.config import AppConfig


def _build_config(audio_root: str = "") -> AppConfig:
    """Summary: Build an AppConfig for API tests.

    Importance: Ensures tests use in-memory storage and the local identity provider.
    Alternatives: Load AppConfig from environment variables.
    """

    return AppConfig(
        document_store="memory",
        identity_provider="local",
        firebase_project_id="",
        firebase_credentials_path="service-account.json",
        audio_root=audio_root,
        api_host="127.0.0.1",
        api_port=8000,
        token_secret="secret",
    )


def _client(audio_root: str = "") -> tuple[TestClient, dict[str, str], str]:
    """Summary: Build a client plus bearer headers for a registered user.

    Importance: Most endpoints require an authenticated subject.
    Alternatives: Disable authentication in tests.
    """

    client = TestClient(create_app(_build_config(audio_root)))
    response = client.post(
        "/api/auth/register",
        json={"email": "a@example.com", "password": "secret1", "fullName": "Ada"},
    )
    assert response.status_code == 201
    body = response.json()
    return client, {"Authorization": f"Bearer {body['token']}"}, body["user"]["id"]


def test_health() -> None:
    client = TestClient(create_app(_build_config()))
    assert client.get("/health").json() == {"status": "ok"}


def test_notes_require_bearer_token() -> None:
    client = TestClient(create_app(_build_config()))
    assert client.get("/api/note").status_code == 401
    assert client.get("/api/note", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_note_crud_flow() -> None:
    """Summary: Verify create, list, update, toggle, and delete over HTTP.

    Importance: Confirms the HTTP layer wires into the note service and storage.
    Alternatives: Validate only the service layer.
    """

    client, headers, _ = _client()
    created = client.post(
        "/api/note",
        json={"title": "Buy milk", "priority": "high", "dueDate": "2024-03-15T10:00:00Z"},
        headers=headers,
    )
    assert created.status_code == 201
    note = created.json()
    assert note["id"]
    assert note["isCompleted"] is False

    listed = client.get("/api/note", headers=headers).json()
    assert [item["title"] for item in listed] == ["Buy milk"]

    updated = client.put(
        f"/api/note/{note['id']}",
        json={"title": "Buy oat milk", "priority": "low"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Buy oat milk"
    stored = client.get("/api/note", headers=headers).json()[0]
    assert stored["priority"] == "low"
    assert stored["dueDate"] is None

    toggled = client.patch(f"/api/note/{note['id']}/toggle", headers=headers)
    assert toggled.json()["isCompleted"] is True

    deleted = client.delete(f"/api/note/{note['id']}", headers=headers)
    assert deleted.status_code == 204
    assert client.get("/api/note", headers=headers).json() == []


def test_add_note_validation_errors() -> None:
    client, headers, _ = _client()
    missing_title = client.post("/api/note", json={"title": ""}, headers=headers)
    assert missing_title.status_code == 400
    assert missing_title.json()["error"] == "Invalid request"
    bad_priority = client.post(
        "/api/note", json={"title": "x", "priority": "urgent"}, headers=headers
    )
    assert bad_priority.status_code == 400


def test_toggle_unknown_note_is_bad_request() -> None:
    client, headers, _ = _client()
    response = client.patch("/api/note/ghost/toggle", headers=headers)
    assert response.status_code == 400


def test_delete_removes_audio_file(tmp_path: Path) -> None:
    audio = tmp_path / "memo.m4a"
    audio.write_bytes(b"data")
    client, headers, _ = _client(audio_root=str(tmp_path))
    note = client.post(
        "/api/note", json={"title": "Memo", "audioUrl": "/audio/memo.m4a"}, headers=headers
    ).json()
    assert client.delete(f"/api/note/{note['id']}", headers=headers).status_code == 204
    assert not audio.exists()


def test_month_analytics_endpoint() -> None:
    """Summary: Verify monthly analytics over HTTP.

    Importance: Drives the dashboard chart.
    Alternatives: Compute analytics on the client.
    """

    client, headers, user_id = _client()
    client.post(
        "/api/note",
        json={"title": "A", "priority": "High", "dueDate": "2024-03-15T00:00:00Z"},
        headers=headers,
    )
    client.post(
        "/api/note",
        json={"title": "B", "priority": "low", "dueDate": "2024-03-20T00:00:00Z"},
        headers=headers,
    )
    response = client.get("/api/analytics/month/2024/3", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["userId"] == user_id
    assert body["highPriorityCount"] == 1
    assert body["lowPriorityCount"] == 1
    assert body["mediumPriorityCount"] == 0
    assert len(body["tasks"]) == 2


def test_analytics_rejects_invalid_dates() -> None:
    client, headers, _ = _client()
    assert client.get("/api/analytics/month/2024/13", headers=headers).status_code == 400
    assert client.get("/api/analytics/date/2024/2/30", headers=headers).status_code == 400


def test_date_tasks_endpoint() -> None:
    client, headers, _ = _client()
    client.post(
        "/api/note",
        json={"title": "Today", "dueDate": "2024-03-15T23:59:59Z"},
        headers=headers,
    )
    client.post(
        "/api/note",
        json={"title": "Tomorrow", "dueDate": "2024-03-16T00:00:00Z"},
        headers=headers,
    )
    response = client.get("/api/analytics/date/2024/3/15", headers=headers)
    assert [task["title"] for task in response.json()] == ["Today"]


def test_register_duplicate_email_error_shape() -> None:
    client, _, _ = _client()
    response = client.post(
        "/api/auth/register",
        json={"email": "a@example.com", "password": "secret1", "fullName": "Ada"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "email-already-in-use"


def test_login_and_get_user() -> None:
    """Summary: Verify login with an ID token and profile lookup.

    Importance: Clients fetch the profile after exchanging their ID token.
    Alternatives: Return the profile only from register.
    """

    client, headers, user_id = _client()
    identity = client.app.state.services.identity
    login = client.post(
        "/api/auth/login",
        json={"email": "a@example.com", "idToken": identity.issue_id_token(user_id)},
    )
    assert login.status_code == 200
    assert login.json()["user"]["id"] == user_id
    profile = client.get(f"/api/auth/user/{user_id}", headers=headers)
    assert profile.json()["email"] == "a@example.com"
    other = client.get("/api/auth/user/someone-else", headers=headers)
    assert other.status_code == 400
    assert other.json()["error"]["message"] == "user-not-found"


def test_login_with_mismatched_email_fails() -> None:
    client, _, user_id = _client()
    identity = client.app.state.services.identity
    response = client.post(
        "/api/auth/login",
        json={"email": "b@example.com", "idToken": identity.issue_id_token(user_id)},
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "invalid-token"


def test_google_sign_in_creates_account() -> None:
    client = TestClient(create_app(_build_config()))
    identity = client.app.state.services.identity
    token = identity.issue_id_token("google-1", email="g@example.com", name="Grace")
    response = client.post("/api/auth/google", json={"idToken": token})
    assert response.status_code == 200
    assert response.json()["user"]["displayName"] == "Grace"


def test_logout_revokes_token() -> None:
    client, headers, user_id = _client()
    response = client.post("/api/auth/logout", json={"userId": user_id}, headers=headers)
    assert response.status_code == 200
    assert client.get("/api/note", headers=headers).status_code == 401


def test_logout_rejects_other_user_id() -> None:
    client, headers, _ = _client()
    response = client.post("/api/auth/logout", json={"userId": "someone-else"}, headers=headers)
    assert response.status_code == 400


def test_change_password_and_reset() -> None:
    client, headers, _ = _client()
    changed = client.post(
        "/api/auth/change-password",
        json={"currentPassword": "secret1", "newPassword": "secret2"},
        headers=headers,
    )
    assert changed.json() == {"status": "ok"}
    reset = client.post("/api/auth/reset-password", json={"email": "a@example.com"})
    assert reset.json() == {"status": "ok"}
    unknown = client.post("/api/auth/reset-password", json={"email": "ghost@example.com"})
    assert unknown.status_code == 400


def test_auth_bodies_missing_fields_are_bad_requests() -> None:
    """Summary: Verify incomplete auth payloads return 400 with the auth error shape.

    Importance: Clients parse error.message on every auth failure.
    Alternatives: Return FastAPI's default 422 validation payload.
    """

    client = TestClient(create_app(_build_config()))
    login = client.post("/api/auth/login", json={})
    assert login.status_code == 400
    assert login.json()["error"]["message"] == "invalid-argument"
    register = client.post("/api/auth/register", json={"email": "a@example.com"})
    assert register.status_code == 400
    assert "password" in register.json()["error"]["details"]


def test_malformed_note_body_is_bad_request() -> None:
    client, headers, _ = _client()
    response = client.post(
        "/api/note", json={"title": "x", "dueDate": "not-a-date"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
