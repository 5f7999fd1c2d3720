# =============================================================================
# tests/test_auth.py - Authentication Tests
# =============================================================================
# Tokens are signed locally with the HS256 test secret from conftest.
# =============================================================================

import time
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from app.auth.dependencies import decode_token
from app.auth.models import AuthUser
from app.config import settings
from tests.conftest import MEMBER_ID


def make_token(**overrides) -> str:
    claims = {
        "sub": MEMBER_ID,
        "email": "member@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


# =============================================================================
# decode_token
# =============================================================================

class TestDecodeToken:

    def test_valid_token(self):
        user = decode_token(make_token())

        assert str(user.id) == MEMBER_ID
        assert user.email == "member@example.com"
        assert user.role == "authenticated"

    def test_expired_token(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(make_token(exp=int(time.time()) - 10))

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_wrong_audience(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(make_token(aud="anon"))
        assert exc_info.value.status_code == 401

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": MEMBER_ID, "aud": "authenticated", "exp": int(time.time()) + 60},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(HTTPException):
            decode_token(token)

    def test_missing_sub(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(make_token(sub=None))
        assert exc_info.value.status_code == 401

    def test_malformed_sub(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(make_token(sub="not-a-uuid"))
        assert exc_info.value.detail == "Invalid token: malformed user ID"


# =============================================================================
# Admin identification
# =============================================================================

class TestIsAdmin:

    def test_admin_email_case_insensitive(self, admin_user):
        assert admin_user.is_admin is True

    def test_member_is_not_admin(self, member):
        assert member.is_admin is False

    def test_no_email_is_not_admin(self):
        assert AuthUser(id=MEMBER_ID).is_admin is False


# =============================================================================
# Routes
# =============================================================================

class TestAuthRoutes:

    def test_verify_with_bearer_token(self, client):
        response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {make_token()}"})

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "user_id": MEMBER_ID,
            "email": "member@example.com",
            "is_admin": False,
        }

    def test_verify_without_token(self, client):
        response = client.get("/api/auth/verify")

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing or invalid authorization header"

    def test_me_merges_profile(self, client):
        profile = {"id": MEMBER_ID, "full_name": "Ada Lovelace", "nickname": "ada", "avatar_color": "#123456"}

        with patch("app.auth.routes.SupabaseClient.fetch_profile", return_value=profile):
            response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {make_token()}"})

        assert response.status_code == 200
        body = response.json()
        assert body["full_name"] == "Ada Lovelace"
        assert body["nickname"] == "ada"
        assert body["is_admin"] is False

    def test_me_without_profile_uses_token(self, client):
        with patch("app.auth.routes.SupabaseClient.fetch_profile", return_value=None):
            response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {make_token()}"})

        assert response.status_code == 200
        assert response.json()["email"] == "member@example.com"
        assert response.json()["full_name"] is None


class TestRequireAdmin:

    def test_member_gets_403(self, member_client):
        response = member_client.get("/api/admin/dashboard-metrics")

        assert response.status_code == 403
        assert response.json() == {"detail": "Admin access required"}

    def test_anonymous_gets_401(self, client):
        assert client.get("/api/admin/users").status_code == 401
