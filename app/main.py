# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Courseware API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import settings
from app.exceptions import (
    CoursewareException,
    courseware_exception_handler,
    database_exception_handler,
)
from app.middleware import (
    BodySizeLimitMiddleware,
    CSRFMiddleware,
    SecurityHeadersMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from app.middleware.csrf import CSRF_HEADER_NAME, CSRF_RESPONSE_HEADER
from app.routers import (
    health,
    site_config,
    content,
    bookmarks,
    user,
    contact,
    subscription,
    webhooks,
    admin,
    admin_content,
    tasks,
)
from app.auth import routes as auth_routes
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the effective security configuration on startup so a disabled
    protection is visible in the deploy logs.
    """
    logger.info(f"Starting Courseware API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.allowed_origins}")

    for name in ("DISABLE_CORS", "DISABLE_SECURITY_HEADERS", "DISABLE_CSRF", "DISABLE_RATE_LIMIT"):
        if getattr(settings, name):
            logger.warning(f"{name} is set")
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set; billing endpoints will fail")
    if not settings.ADMIN_EMAIL:
        logger.warning("ADMIN_EMAIL is not set; admin endpoints are unreachable")

    yield

    logger.info("Shutting down Courseware API")


# Create FastAPI application
app = FastAPI(
    title="Courseware API",
    description="""
## Subscription Courseware Platform API

Back end for the course site: a paywalled catalogue of modules and
sections, member accounts, Stripe billing and the admin back office.

### Access

| Caller | Can read |
|--------|----------|
| **Anonymous / free member** | Module list, sections of the first module |
| **Premium member** | Every section |
| **Admin** | Everything, plus `/api/admin` |

Authenticate with the Supabase access token: `Authorization: Bearer <jwt>`.

State-changing requests need the CSRF token from `GET /api/config/csrf-token`
echoed in the `x-csrf-token-header` header.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Token verification and current user"},
        {"name": "Config", "description": "Public site flags and CSRF token"},
        {"name": "Content", "description": "Modules, sections and search"},
        {"name": "Progress", "description": "Bookmarks and section completion"},
        {"name": "User", "description": "Profile, password and email preferences"},
        {"name": "Contact", "description": "Public contact form"},
        {"name": "Subscription", "description": "Stripe Checkout, portal and cancellation"},
        {"name": "Webhooks", "description": "Stripe event receiver"},
        {"name": "Admin", "description": "Admin back office"},
        {"name": "Admin Content", "description": "Module and section editor"},
        {"name": "Tasks", "description": "Track background job progress"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)

app.state.limiter = limiter


# =============================================================================
# Middleware
# =============================================================================
# Added innermost first: CORS ends up outermost so every response,
# including CSRF and size-limit rejections, carries CORS headers.

# Passes requests straight through while limiter.enabled is False
# (DISABLE_RATE_LIMIT)
app.add_middleware(SlowAPIMiddleware)

if not settings.DISABLE_CSRF:
    app.add_middleware(CSRFMiddleware)

app.add_middleware(
    BodySizeLimitMiddleware,
    max_bytes=settings.MAX_BODY_BYTES,
    large_max_bytes=settings.MAX_ADMIN_BODY_BYTES,
)

if not settings.DISABLE_SECURITY_HEADERS:
    app.add_middleware(SecurityHeadersMiddleware)

if not settings.DISABLE_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", CSRF_HEADER_NAME],
        expose_headers=[CSRF_RESPONSE_HEADER],
    )


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(CoursewareException)
async def handle_courseware_exception(request: Request, exc: CoursewareException):
    """Handle custom Courseware exceptions."""
    return await courseware_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_database_exception(request: Request, exc: SupabaseClientError):
    return await database_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health checks live outside /api
app.include_router(health.router, tags=["Health"])

# Authentication endpoints
app.include_router(auth_routes.router, prefix="/api")

# Public configuration
app.include_router(site_config.router, prefix="/api")

# Catalogue
app.include_router(content.router, prefix="/api")

# Member activity and account
app.include_router(bookmarks.router, prefix="/api")
app.include_router(user.router, prefix="/api")
app.include_router(contact.router, prefix="/api")

# Billing
app.include_router(subscription.router, prefix="/api")
app.include_router(webhooks.router, prefix="/api")

# Admin back office
app.include_router(admin.router, prefix="/api")
app.include_router(admin_content.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Courseware API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
