# =============================================================================
# tests/test_site_config.py - Public Config, CSRF Bootstrap and Health Tests
# =============================================================================

from unittest.mock import patch

import redis

from app.middleware.csrf import CSRF_COOKIE_NAME, CSRF_RESPONSE_HEADER
from lib.supabase_client import SupabaseClientError

CONFIG_SUPABASE = "core.services.config_service.SupabaseClient"
HEALTH_SUPABASE = "app.routers.health.SupabaseClient"
HEALTH_REDIS = "app.routers.health.redis.Redis"


# =============================================================================
# /api/config
# =============================================================================

class TestPublicConfig:

    def test_public_config_by_alias(self, client):
        with patch(CONFIG_SUPABASE) as mock_db:
            mock_db.fetch_config.return_value = {
                "maintenance_mode": "false",
                "announcement_banner_enabled": "true",
                "announcement_banner_text": "Module 4 is live",
            }

            response = client.get("/api/config/public")

        assert response.status_code == 200
        assert response.json() == {
            "maintenanceMode": False,
            "announcementBannerEnabled": True,
            "announcementBannerText": "Module 4 is live",
        }

    def test_missing_rows_default_off(self, client):
        with patch(CONFIG_SUPABASE) as mock_db:
            mock_db.fetch_config.return_value = {}

            response = client.get("/api/config/public")

        assert response.json()["maintenanceMode"] is False

    def test_database_failure_returns_safe_defaults(self, client):
        with patch(CONFIG_SUPABASE) as mock_db:
            mock_db.fetch_config.side_effect = SupabaseClientError("timeout", code="FETCH_CONFIG_FAILED")

            response = client.get("/api/config/public")

        assert response.status_code == 500
        assert response.json() == {
            "maintenanceMode": False,
            "announcementBannerEnabled": False,
            "announcementBannerText": "",
        }


class TestCsrfToken:

    def test_issues_token_and_cookie(self, client):
        response = client.get("/api/config/csrf-token")

        token = response.json()["csrfToken"]
        assert token
        assert response.headers[CSRF_RESPONSE_HEADER] == token
        assert client.cookies.get(CSRF_COOKIE_NAME) == token

    def test_reuses_existing_cookie(self, client):
        client.cookies.set(CSRF_COOKIE_NAME, "existing-token")

        response = client.get("/api/config/csrf-token")

        assert response.json() == {"csrfToken": "existing-token"}
        assert "set-cookie" not in response.headers


# =============================================================================
# Health
# =============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_liveness(self, client):
        assert client.get("/health/live").json()["status"] == "alive"

    def test_ready(self, client):
        with patch(HEALTH_SUPABASE), patch(HEALTH_REDIS):
            response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"] == {"database": "healthy", "redis": "healthy"}

    def test_redis_down_is_degraded(self, client):
        with patch(HEALTH_SUPABASE), patch(HEALTH_REDIS) as mock_redis:
            mock_redis.from_url.return_value.ping.side_effect = redis.ConnectionError("refused")

            response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["redis"].startswith("unhealthy")

    def test_database_down_is_503(self, client):
        with patch(HEALTH_SUPABASE) as mock_db, patch(HEALTH_REDIS):
            mock_db.fetch_config.side_effect = SupabaseClientError("no route to host")

            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/health"
