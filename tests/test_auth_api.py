from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from taskapi.core.tokens import ALGORITHM, TOKEN_TTL_HOURS, issue_token, verify_token
from tests.shared import TEST_SECRET, ApiTestContext


def _login(context: ApiTestContext, username: str = "alice", password: str = "pw") -> str:
    response = context.client.post(
        "/api/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200
    return response.json()["token"]


def test_open_server_allows_every_endpoint_without_token(api_context: ApiTestContext) -> None:
    client = api_context.client

    created = client.post("/api/tasks", json={"title": "open"})
    assert created.status_code == 201
    task_id = created.json()["id"]

    assert client.get("/api/tasks").status_code == 200
    assert client.get(f"/api/tasks/{task_id}").status_code == 200
    assert client.put(f"/api/tasks/{task_id}", json={"completed": True}).status_code == 200
    assert client.delete(f"/api/tasks/{task_id}").status_code == 204


def test_login_rejected_when_auth_disabled(api_context: ApiTestContext) -> None:
    response = api_context.client.post(
        "/api/login",
        json={"username": "alice", "password": "pw"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "JWT not enabled on server (set JWT_SECRET to enable)"}


def test_login_issues_twelve_hour_token(auth_api_context: ApiTestContext) -> None:
    response = auth_api_context.client.post(
        "/api/login",
        json={"username": "alice", "password": "pw"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["expires_in_hours"] == 12
    claims = verify_token(payload["token"], TEST_SECRET)
    assert claims.sub == "alice"
    expected_exp = datetime.now(UTC) + timedelta(hours=TOKEN_TTL_HOURS)
    assert abs(claims.exp - expected_exp.timestamp()) < 60


@pytest.mark.parametrize(
    ("username", "password"),
    [("", "pw"), ("alice", ""), ("   ", "pw"), ("alice", "\t")],
)
def test_login_rejects_blank_credentials(
    auth_api_context: ApiTestContext,
    username: str,
    password: str,
) -> None:
    response = auth_api_context.client.post(
        "/api/login",
        json={"username": username, "password": password},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_login_requires_both_fields(auth_api_context: ApiTestContext) -> None:
    response = auth_api_context.client.post("/api/login", json={"username": "alice"})

    assert response.status_code == 400
    assert "password" in response.json()["error"]


def test_reads_allowed_without_token_in_read_only_mode(
    auth_api_context: ApiTestContext,
) -> None:
    created = auth_api_context.client.post(
        "/api/tasks",
        json={"title": "visible"},
        headers=auth_api_context.bearer(),
    )
    task_id = created.json()["id"]

    assert auth_api_context.client.get("/api/tasks").status_code == 200
    assert auth_api_context.client.get(f"/api/tasks/{task_id}").status_code == 200


def test_writes_require_token_in_read_only_mode(auth_api_context: ApiTestContext) -> None:
    client = auth_api_context.client
    created = client.post("/api/tasks", json={"title": "guarded"}, headers=auth_api_context.bearer())
    task_id = created.json()["id"]

    responses = [
        client.post("/api/tasks", json={"title": "nope"}),
        client.put(f"/api/tasks/{task_id}", json={"completed": True}),
        client.delete(f"/api/tasks/{task_id}"),
    ]

    for response in responses:
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
    assert auth_api_context.count_tasks() == 1
    assert client.get(f"/api/tasks/{task_id}").json()["completed"] is False


def test_login_token_passes_gate(auth_api_context: ApiTestContext) -> None:
    token = _login(auth_api_context)
    headers = {"Authorization": f"Bearer {token}"}

    created = auth_api_context.client.post("/api/tasks", json={"title": "mine"}, headers=headers)
    assert created.status_code == 201
    task_id = created.json()["id"]

    updated = auth_api_context.client.put(
        f"/api/tasks/{task_id}",
        json={"completed": True},
        headers=headers,
    )
    assert updated.status_code == 200
    deleted = auth_api_context.client.delete(f"/api/tasks/{task_id}", headers=headers)
    assert deleted.status_code == 204


def test_expired_token_is_rejected(auth_api_context: ApiTestContext) -> None:
    issued_long_ago = datetime.now(UTC) - timedelta(hours=TOKEN_TTL_HOURS + 1)
    token = issue_token("alice", TEST_SECRET, now=issued_long_ago).token

    response = auth_api_context.client.post(
        "/api/tasks",
        json={"title": "late"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert auth_api_context.count_tasks() == 0


@pytest.mark.parametrize(
    "authorization",
    [
        "Bearer not-a-jwt",
        "Bearer ",
        "Token abc",
        f"Basic {issue_token('alice', TEST_SECRET).token}",
        f"Bearer {issue_token('alice', 'some-other-secret').token}",
        "Bearer " + jwt.encode({"sub": "alice"}, TEST_SECRET, algorithm=ALGORITHM),
    ],
)
def test_invalid_authorization_headers_are_rejected(
    auth_api_context: ApiTestContext,
    authorization: str,
) -> None:
    response = auth_api_context.client.post(
        "/api/tasks",
        json={"title": "x"},
        headers={"Authorization": authorization},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_bearer_scheme_is_case_insensitive(auth_api_context: ApiTestContext) -> None:
    token = issue_token("alice", TEST_SECRET).token

    response = auth_api_context.client.post(
        "/api/tasks",
        json={"title": "lowercase scheme"},
        headers={"Authorization": f"bearer {token}"},
    )

    assert response.status_code == 201


def test_auth_runs_before_body_validation(auth_api_context: ApiTestContext) -> None:
    response = auth_api_context.client.post("/api/tasks", json={"title": ""})

    assert response.status_code == 401


def test_strict_mode_gates_reads(strict_auth_api_context: ApiTestContext) -> None:
    client = strict_auth_api_context.client

    assert client.get("/api/tasks").status_code == 401
    assert client.get("/api/tasks/1").status_code == 401
    authorized = client.get("/api/tasks", headers=strict_auth_api_context.bearer())
    assert authorized.status_code == 200


def test_login_is_never_gated(strict_auth_api_context: ApiTestContext) -> None:
    token = _login(strict_auth_api_context)

    assert token
