# tests/v1/test_api_keys.py
"""Tests for developer-portal API key endpoints."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from swip_api.core.security import is_valid_api_key_format
from swip_api.core.settings import settings
from swip_api.models import ApiKey, App
from swip_api.services.api_keys import ApiKeyService

KEYS_URL = "/api/v1/api-keys/"


def test_requires_authentication(client: TestClient) -> None:
    r = client.get(KEYS_URL)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"ok": False, "error": "Not authenticated"}


def test_rejects_bad_token(client: TestClient) -> None:
    r = client.get(KEYS_URL, headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["error"] == "Could not validate credentials"


def test_create_key(
    client: TestClient, db_session: Session, auth_token: dict[str, str], test_app: App
) -> None:
    r = client.post(
        KEYS_URL,
        json={"appId": test_app.id, "keyName": "CI", "environment": "test"},
        headers=auth_token,
    )

    assert r.status_code == status.HTTP_201_CREATED
    body = r.json()
    assert body["ok"] is True
    assert is_valid_api_key_format(body["apiKey"])
    assert body["preview"] == body["apiKey"][:10] + "..."

    stored = db_session.get(ApiKey, body["id"])
    assert stored is not None
    assert stored.app_id == test_app.id
    assert stored.name == "CI"
    assert stored.environment == "test"
    assert body["apiKey"] not in (stored.key_hash, stored.lookup_hash)


def test_created_key_can_ingest(
    client: TestClient, auth_token: dict[str, str], test_app: App
) -> None:
    secret = client.post(KEYS_URL, json={"appId": test_app.id}, headers=auth_token).json()[
        "apiKey"
    ]
    r = client.post(
        "/api/v1/swip/ingest",
        json={"app_id": test_app.id, "session_id": "s1", "metrics": {"emotion": "focused"}},
        headers={"x-api-key": secret},
    )
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["swip_score"] == 55


def test_create_key_for_foreign_app(
    client: TestClient, other_auth_token: dict[str, str], test_app: App
) -> None:
    r = client.post(KEYS_URL, json={"appId": test_app.id}, headers=other_auth_token)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"ok": False, "error": "App not found or access denied"}


def test_create_key_requires_app_id(client: TestClient, auth_token: dict[str, str]) -> None:
    r = client.post(KEYS_URL, json={"keyName": "orphan"}, headers=auth_token)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "appId" in r.json()["error"]["fields"]


def test_create_key_rejects_long_environment(
    client: TestClient, auth_token: dict[str, str], test_app: App
) -> None:
    r = client.post(
        KEYS_URL, json={"appId": test_app.id, "environment": "x" * 33}, headers=auth_token
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "environment" in r.json()["error"]["fields"]


def test_create_key_hashes_off_the_event_loop(
    client: TestClient,
    auth_token: dict[str, str],
    test_app: App,
    api_key_service: ApiKeyService,
    mocker: Any,
) -> None:
    issue_key = api_key_service.issue_key
    loop_running: list[bool] = []

    def _issue_key(*args: Any, **kwargs: Any) -> tuple[ApiKey, str]:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            loop_running.append(False)
        else:
            loop_running.append(True)
        return issue_key(*args, **kwargs)

    mocker.patch.object(api_key_service, "issue_key", side_effect=_issue_key)

    r = client.post(KEYS_URL, json={"appId": test_app.id}, headers=auth_token)

    assert r.status_code == status.HTTP_201_CREATED
    assert loop_running == [False]


def test_list_keys_hides_secrets(
    client: TestClient, auth_token: dict[str, str], issued_key: tuple[ApiKey, str]
) -> None:
    api_key, _ = issued_key
    r = client.get(KEYS_URL, headers=auth_token)

    assert r.status_code == status.HTTP_200_OK
    assert r.headers["x-ratelimit-limit"] == str(settings.keys_list_rate_limit)
    keys = r.json()["keys"]
    assert len(keys) == 1
    assert keys[0]["id"] == api_key.id
    assert keys[0]["preview"] == api_key.preview
    assert keys[0]["revoked"] is False
    assert keys[0]["environment"] == "default"
    assert "key_hash" not in keys[0] and "lookup_hash" not in keys[0]


def test_list_keys_only_shows_own(
    client: TestClient, other_auth_token: dict[str, str], issued_key: tuple[ApiKey, str]
) -> None:
    r = client.get(KEYS_URL, headers=other_auth_token)
    assert r.json() == {"ok": True, "keys": []}


def test_revoke_and_reactivate(
    client: TestClient,
    db_session: Session,
    auth_token: dict[str, str],
    issued_key: tuple[ApiKey, str],
) -> None:
    api_key, _ = issued_key
    url = f"{KEYS_URL}{api_key.id}"

    r = client.patch(url, json={"action": "revoke"}, headers=auth_token)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["revoked"] is True
    db_session.refresh(api_key)
    assert api_key.revoked is True

    r = client.patch(url, json={"action": "revoke"}, headers=auth_token)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "API key is already revoked"

    r = client.patch(url, json={"action": "reactivate"}, headers=auth_token)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["message"] == "API key reactivated successfully"

    r = client.patch(url, json={"action": "reactivate"}, headers=auth_token)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "API key is already active"


def test_revoke_rejects_unknown_action(
    client: TestClient, auth_token: dict[str, str], issued_key: tuple[ApiKey, str]
) -> None:
    r = client.patch(
        f"{KEYS_URL}{issued_key[0].id}", json={"action": "destroy"}, headers=auth_token
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "action" in r.json()["error"]["fields"]


def test_cannot_touch_foreign_key(
    client: TestClient, other_auth_token: dict[str, str], issued_key: tuple[ApiKey, str]
) -> None:
    url = f"{KEYS_URL}{issued_key[0].id}"
    assert (
        client.patch(url, json={"action": "revoke"}, headers=other_auth_token).status_code
        == status.HTTP_404_NOT_FOUND
    )
    assert client.delete(url, headers=other_auth_token).status_code == status.HTTP_404_NOT_FOUND


def test_delete_key(
    client: TestClient,
    db_session: Session,
    auth_token: dict[str, str],
    issued_key: tuple[ApiKey, str],
) -> None:
    api_key, _ = issued_key
    key_id = api_key.id

    r = client.delete(f"{KEYS_URL}{key_id}", headers=auth_token)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["ok"] is True
    assert db_session.get(ApiKey, key_id) is None

    r = client.delete(f"{KEYS_URL}{key_id}", headers=auth_token)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_create_rate_limited(
    client: TestClient,
    auth_token: dict[str, str],
    test_app: App,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "keys_create_rate_limit", 1)

    assert client.post(KEYS_URL, json={"appId": test_app.id}, headers=auth_token).status_code == 201
    r = client.post(KEYS_URL, json={"appId": test_app.id}, headers=auth_token)
    assert r.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert r.headers["x-ratelimit-remaining"] == "0"


def test_portal_limit_checked_before_auth(
    client: TestClient, fake_redis: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "keys_list_rate_limit", 1)
    assert client.get(KEYS_URL).status_code == status.HTTP_401_UNAUTHORIZED
    assert client.get(KEYS_URL).status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert "ratelimit:keys:list:testclient" in fake_redis.zsets
