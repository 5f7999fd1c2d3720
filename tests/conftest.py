# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Disables CSRF and rate limiting for router tests (the middleware has
#   its own tests)
# - Provides authenticated TestClient fixtures via dependency overrides
# =============================================================================

import os
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-0123456789")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_123")
os.environ.setdefault("DISABLE_CSRF", "true")
os.environ.setdefault("DISABLE_RATE_LIMIT", "true")

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from app.auth.dependencies import get_current_user, get_current_user_optional
from app.auth.models import AuthUser

MEMBER_ID = "11111111-1111-4111-8111-111111111111"
ADMIN_ID = "99999999-9999-4999-8999-999999999999"


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def member():
    """A signed-in member who is not the admin."""
    return AuthUser(id=UUID(MEMBER_ID), email="member@example.com", role="authenticated")


@pytest.fixture
def admin_user():
    """The admin account (email matches ADMIN_EMAIL)."""
    return AuthUser(id=UUID(ADMIN_ID), email="Admin@Example.com", role="authenticated")


# =============================================================================
# Clients
# =============================================================================

@pytest.fixture
def app():
    from app.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Anonymous client."""
    return TestClient(app)


def _login(app, user: AuthUser) -> TestClient:
    # Mirrors get_current_user, which leaves the user on request.state
    def current_user(request: Request) -> AuthUser:
        request.state.user = user
        return user

    app.dependency_overrides[get_current_user] = current_user
    app.dependency_overrides[get_current_user_optional] = current_user
    return TestClient(app)


@pytest.fixture
def member_client(app, member):
    """Client authenticated as a regular member."""
    return _login(app, member)


@pytest.fixture
def admin_client(app, admin_user):
    """Client authenticated as the admin."""
    return _login(app, admin_user)


# =============================================================================
# Sample rows
# =============================================================================

@pytest.fixture
def sample_modules():
    """Two modules: the free preview and a premium one."""
    return [
        {
            "id": "mod-1",
            "title": "Getting Started",
            "description": "Free preview",
            "slug": "getting-started",
            "order_index": 1,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        },
        {
            "id": "mod-2",
            "title": "Advanced Topics",
            "description": "Premium",
            "slug": "advanced-topics",
            "order_index": 2,
            "created_at": "2024-01-02T00:00:00+00:00",
            "updated_at": "2024-01-02T00:00:00+00:00",
        },
    ]


@pytest.fixture
def sample_section():
    return {
        "id": "sec-1",
        "module_id": "mod-2",
        "title": "Deep Dive",
        "content": "<p>Premium lesson</p>",
        "order_index": 1,
        "created_at": "2024-01-03T00:00:00+00:00",
        "updated_at": "2024-01-03T00:00:00+00:00",
    }


@pytest.fixture
def sample_subscription():
    return {
        "id": "sub_123",
        "user_id": MEMBER_ID,
        "plan_id": "plan-monthly",
        "status": "active",
        "stripe_customer_id": "cus_123",
        "current_period_start": "2024-01-01T00:00:00+00:00",
        "current_period_end": "2024-02-01T00:00:00+00:00",
        "cancel_at_period_end": False,
        "plan": {"id": "plan-monthly", "name": "Monthly", "plan_type": "monthly"},
    }
