# This project was developed with assistance from AI tools.
"""Tests for JWT authentication middleware and data scopes."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from zakat_db.enums import UserRole

from zakat_api.core.auth import build_data_scope
from zakat_api.core.config import settings
from zakat_api.main import app
from zakat_api.middleware.auth import _resolve_role, get_current_user
from zakat_api.schemas.auth import TokenPayload
from zakat_api.services.errors import PermissionDeniedError

# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_auth_disabled_returns_dev_super_admin(monkeypatch):
    """When AUTH_DISABLED=true, any request runs as the dev super admin."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    user = await get_current_user(MagicMock())
    assert user.user_id == "dev-user"
    assert user.role == UserRole.SUPER_ADMIN
    assert user.data_scope.full_pipeline is True


# ---------------------------------------------------------------------------
# Missing / malformed token
# ---------------------------------------------------------------------------


def test_missing_token_returns_401(monkeypatch):
    """A request with no Authorization header gets an unauthenticated envelope."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(app).get("/api/flags/")

    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "unauthenticated"
    assert "Missing authentication token" in body["detail"]
    assert resp.headers["www-authenticate"] == "Bearer"


def test_non_bearer_header_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(app).get("/api/flags/", headers={"Authorization": "Basic abc"})

    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------


def _payload(*roles):
    return TokenPayload(sub="u-1", realm_access={"roles": list(roles)})


def test_resolve_single_role():
    assert _resolve_role(_payload("zakat_admin")) == UserRole.ZAKAT_ADMIN


def test_resolve_ignores_keycloak_builtins():
    assert _resolve_role(_payload("offline_access", "applicant")) == UserRole.APPLICANT


def test_most_privileged_role_wins():
    assert _resolve_role(_payload("applicant", "super_admin", "zakat_admin")) == UserRole.SUPER_ADMIN


def test_no_recognized_role_denied():
    with pytest.raises(PermissionDeniedError):
        _resolve_role(_payload("uma_authorization"))


# ---------------------------------------------------------------------------
# Data scope
# ---------------------------------------------------------------------------


def test_applicant_scope_is_own_data():
    scope = build_data_scope(UserRole.APPLICANT, "a-1")
    assert scope.own_data_only is True
    assert scope.user_id == "a-1"
    assert scope.full_pipeline is False


def test_zakat_admin_scope_carries_masjid():
    scope = build_data_scope(UserRole.ZAKAT_ADMIN, "z-1", 7)
    assert scope.own_data_only is False
    assert (scope.user_id, scope.masjid_id) == ("z-1", 7)


def test_super_admin_scope_is_full_pipeline():
    assert build_data_scope(UserRole.SUPER_ADMIN, "s-1").full_pipeline is True
