from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt

from core.config import get_settings
from mediahub.interfaces.dependencies.auth import resolve_actor_from_access_token
from mediahub.main import app


def _token(**claims) -> str:
    settings = get_settings()
    payload = {"exp": datetime.now(timezone.utc) + timedelta(minutes=5), **claims}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def test_resolve_actor_from_access_token() -> None:
    actor = resolve_actor_from_access_token(_token(sub="user-9", role="admin", type="access"))

    assert actor.id == "user-9"
    assert actor.is_admin


def test_refresh_token_is_rejected() -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_actor_from_access_token(_token(sub="user-9", type="refresh"))

    assert exc_info.value.status_code == 401


def test_token_without_subject_is_rejected() -> None:
    with pytest.raises(HTTPException):
        resolve_actor_from_access_token(_token(role="user"))


def test_routes_require_bearer_token() -> None:
    response = TestClient(app).get("/api/folders")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["code"] == 401


def test_invalid_bearer_token_is_rejected() -> None:
    response = TestClient(app).get(
        "/api/files", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
