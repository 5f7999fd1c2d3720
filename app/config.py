# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Origins the browser client is served from during local development
DEVELOPMENT_ORIGINS = [
    "http://localhost:80",
    "http://localhost",
    "http://localhost:8080",
    "http://localhost:5173",
    "http://localhost:3000",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Third-party integrations (Stripe, Gmail, Brevo) default to empty strings
    so the API can boot without them; the features that need them check the
    `*_configured` properties and degrade or fail with a clear error.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key (used for password checks)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="JWT secret for HS256 access tokens (Settings > API in Supabase)"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # -------------------------------------------------------------------------
    # Client URLs
    # -------------------------------------------------------------------------

    CLIENT_URL: str = Field(
        default="http://localhost:5173",
        description="Public URL of the web client (production CORS origin)"
    )

    FRONTEND_URL: str = Field(
        default="",
        description="Overrides CLIENT_URL when building checkout redirect URLs"
    )

    BASE_URL: str = Field(
        default="",
        description="Fallback base URL for checkout redirects"
    )

    ADDITIONAL_ORIGINS: str = Field(
        default="",
        description="Extra production CORS origins (comma-separated)"
    )

    CORS_ORIGINS: str = Field(
        default="",
        description="Extra development CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    SECRET_KEY: str = Field(
        default="dev-secret-key-change-in-production",
        min_length=16,
        description="Secret key for signing tokens"
    )

    DISABLE_CORS: bool = Field(default=False, description="Skip CORS middleware")
    DISABLE_SECURITY_HEADERS: bool = Field(default=False, description="Skip security headers")
    DISABLE_CSRF: bool = Field(default=False, description="Skip CSRF double-submit check")
    DISABLE_RATE_LIMIT: bool = Field(default=False, description="Skip rate limiting")

    COOKIE_DOMAIN: str | None = Field(
        default=None,
        description="Domain attribute for the CSRF cookie"
    )

    RATE_LIMIT_STORAGE_URI: str = Field(
        default="memory://",
        description="slowapi storage backend (memory:// or a redis:// URL)"
    )

    MAX_BODY_BYTES: int = Field(
        default=10 * 1024,
        ge=1024,
        description="Largest accepted request body (webhooks excluded)"
    )

    MAX_ADMIN_BODY_BYTES: int = Field(
        default=1024 * 1024,
        ge=1024,
        description="Body limit for /api/admin/ routes (section HTML)"
    )

    # -------------------------------------------------------------------------
    # Stripe
    # -------------------------------------------------------------------------

    STRIPE_SECRET_KEY: str = Field(default="", description="Stripe secret API key")

    STRIPE_WEBHOOK_SECRET: str = Field(
        default="",
        description="Signing secret for the /api/webhooks/stripe endpoint"
    )

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    ADMIN_EMAIL: str = Field(
        default="",
        description="Email of the single administrator account"
    )

    ADMIN_SECRET: str = Field(
        default="",
        description="Shared secret required for bulk email sends"
    )

    # -------------------------------------------------------------------------
    # Gmail (transactional email)
    # -------------------------------------------------------------------------

    GOOGLE_CLIENT_ID: str = Field(default="", description="OAuth client ID")
    GOOGLE_CLIENT_SECRET: str = Field(default="", description="OAuth client secret")
    GOOGLE_REFRESH_TOKEN: str = Field(default="", description="Refresh token for the sender mailbox")

    ADMIN_SENDER_EMAIL: str = Field(default="", description="From address for outgoing mail")
    ADMIN_SENDER_NAME: str = Field(default="Course Team", description="From display name")
    ADMIN_RECIPIENT_EMAIL: str = Field(default="", description="Where contact form messages go")

    # -------------------------------------------------------------------------
    # Brevo (contact lists)
    # -------------------------------------------------------------------------

    BREVO_API_KEY: str = Field(default="", description="Brevo v3 API key")
    BREVO_LIST_CONTENT_UPDATES: int = Field(default=5)
    BREVO_LIST_MARKETING: int = Field(default=2)
    BREVO_LIST_ACCOUNT_CHANGES: int = Field(default=6)

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @staticmethod
    def _split(value: str) -> list[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def allowed_origins(self) -> list[str]:
        """
        Origins accepted by CORS.

        Development allows the usual localhost ports plus CORS_ORIGINS;
        everything else allows CLIENT_URL plus ADDITIONAL_ORIGINS.
        """
        if self.is_development:
            return DEVELOPMENT_ORIGINS + self._split(self.CORS_ORIGINS)
        return [self.CLIENT_URL] + self._split(self.ADDITIONAL_ORIGINS)

    @property
    def frontend_base_url(self) -> str:
        """Base URL used for Stripe redirect targets."""
        return (self.FRONTEND_URL or self.BASE_URL or self.CLIENT_URL).rstrip("/")

    @property
    def gmail_configured(self) -> bool:
        return all([
            self.GOOGLE_CLIENT_ID,
            self.GOOGLE_CLIENT_SECRET,
            self.GOOGLE_REFRESH_TOKEN,
            self.ADMIN_SENDER_EMAIL,
        ])

    @property
    def brevo_configured(self) -> bool:
        return bool(self.BREVO_API_KEY)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
settings = get_settings()
