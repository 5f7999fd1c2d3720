# =============================================================================
# tests/test_middleware.py - HTTP Security Middleware Tests
# =============================================================================
# The main app runs with CSRF and rate limiting disabled in tests, so each
# middleware is mounted on a small dedicated app here.
# =============================================================================

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request as StarletteRequest

from app.auth.models import AuthUser
from app.middleware.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    CSRF_RESPONSE_HEADER,
    CSRFMiddleware,
)
from app.middleware.rate_limit import get_client_identifier, rate_limit_exceeded_handler
from app.middleware.security import (
    BodySizeLimitMiddleware,
    SecurityHeadersMiddleware,
    build_content_security_policy,
)
from tests.conftest import MEMBER_ID


def build_app() -> FastAPI:
    test_app = FastAPI()

    @test_app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @test_app.post("/api/echo")
    async def echo(request: Request):
        return {"size": len(await request.body())}

    @test_app.post("/api/webhooks/stripe")
    async def webhook():
        return {"received": True}

    return test_app


# =============================================================================
# CSRF
# =============================================================================

class TestCSRFMiddleware:

    @pytest.fixture
    def csrf_client(self):
        test_app = build_app()
        test_app.add_middleware(CSRFMiddleware)
        return TestClient(test_app)

    def test_get_issues_token(self, csrf_client):
        response = csrf_client.get("/api/ping")

        assert response.status_code == 200
        token = response.headers[CSRF_RESPONSE_HEADER]
        assert token
        assert csrf_client.cookies.get(CSRF_COOKIE_NAME) == token

    def test_post_without_token_rejected(self, csrf_client):
        response = csrf_client.post("/api/echo", json={})

        assert response.status_code == 403
        assert response.json() == {"detail": "Invalid CSRF token", "code": "CSRF_INVALID"}

    def test_post_with_matching_token(self, csrf_client):
        token = csrf_client.get("/api/ping").headers[CSRF_RESPONSE_HEADER]

        response = csrf_client.post("/api/echo", json={}, headers={CSRF_HEADER_NAME: token})

        assert response.status_code == 200
        assert response.headers[CSRF_RESPONSE_HEADER] == token

    def test_post_with_mismatched_token(self, csrf_client):
        csrf_client.get("/api/ping")

        response = csrf_client.post("/api/echo", json={}, headers={CSRF_HEADER_NAME: "forged"})

        assert response.status_code == 403

    def test_webhooks_exempt(self, csrf_client):
        response = csrf_client.post("/api/webhooks/stripe", content=b"{}")
        assert response.status_code == 200


# =============================================================================
# Security headers & body limit
# =============================================================================

class TestSecurityHeaders:

    def test_headers_present(self):
        test_app = build_app()
        test_app.add_middleware(SecurityHeadersMiddleware)

        response = TestClient(test_app).get("/api/ping")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]

    def test_no_hsts_outside_production(self):
        test_app = build_app()
        test_app.add_middleware(SecurityHeadersMiddleware)

        response = TestClient(test_app).get("/api/ping")

        assert "Strict-Transport-Security" not in response.headers

    def test_csp_allows_stripe_and_supabase(self):
        csp = build_content_security_policy("https://abc.supabase.co")

        assert "script-src 'self' https://js.stripe.com" in csp
        assert "https://abc.supabase.co" in csp
        assert "frame-src https://js.stripe.com https://hooks.stripe.com" in csp
        assert "object-src 'none'" in csp


class TestBodySizeLimit:

    @pytest.fixture
    def limited_client(self):
        test_app = build_app()
        test_app.add_middleware(BodySizeLimitMiddleware, max_bytes=100)
        return TestClient(test_app)

    def test_small_body_passes(self, limited_client):
        response = limited_client.post("/api/echo", content=b"x" * 50)
        assert response.status_code == 200

    def test_large_body_rejected(self, limited_client):
        response = limited_client.post("/api/echo", content=b"x" * 101)

        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"

    def test_webhook_exempt(self, limited_client):
        response = limited_client.post("/api/webhooks/stripe", content=b"x" * 500)
        assert response.status_code == 200

    def test_admin_paths_get_larger_limit(self):
        middleware = BodySizeLimitMiddleware(build_app(), max_bytes=100, large_max_bytes=5000)

        assert middleware.limit_for("/api/contact") == 100
        assert middleware.limit_for("/api/admin/sections") == 5000
        assert middleware.limit_for("/api/webhooks/stripe") is None


# =============================================================================
# Rate limiting
# =============================================================================

def make_request(headers: dict | None = None) -> StarletteRequest:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/ping",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("10.0.0.1", 1234),
        "query_string": b"",
    }
    return StarletteRequest(scope)


class TestRateLimit:

    def test_identifier_uses_ip(self):
        assert get_client_identifier(make_request()) == "ip:10.0.0.1"

    def test_identifier_honours_forwarded_for(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert get_client_identifier(request) == "ip:203.0.113.7"

    def test_identifier_prefers_user(self):
        request = make_request()
        request.state.user = AuthUser(id=MEMBER_ID)

        assert get_client_identifier(request) == f"user:{MEMBER_ID}"

    def test_limit_exceeded_returns_429(self):
        limiter = Limiter(key_func=get_client_identifier, storage_uri="memory://")
        test_app = FastAPI()
        test_app.state.limiter = limiter
        test_app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

        @test_app.get("/api/limited")
        @limiter.limit("2 per minute")
        async def limited(request: Request):
            return {"ok": True}

        test_client = TestClient(test_app)
        assert test_client.get("/api/limited").status_code == 200
        assert test_client.get("/api/limited").status_code == 200

        response = test_client.get("/api/limited")
        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"
        assert response.headers["Retry-After"] == "60"
