# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# Mounted at the root (no /api prefix) and exempt from CSRF checks.
# =============================================================================

import logging

import redis
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from app.middleware.rate_limit import limiter
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str


class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str
    redis: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
@limiter.exempt
async def health_check():
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(status="ok", timestamp=utc_now_iso())


@router.get("/health/ready", response_model=ReadinessResponse)
@limiter.exempt
async def readiness_check():
    """
    Readiness check endpoint.

    Checks database and Redis connectivity. Responds 503 when the
    database is unreachable; a Redis outage only degrades background jobs.
    """
    checks = ChecksResponse(database="unknown", redis="unknown")

    try:
        SupabaseClient.fetch_config(["maintenance_mode"])
        checks.database = "healthy"
    except Exception as e:
        checks.database = f"unhealthy: {str(e)[:50]}"

    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
        checks.redis = "healthy"
    except redis.RedisError as e:
        checks.redis = f"unhealthy: {str(e)[:50]}"

    if checks.database != "healthy":
        logger.error(f"Readiness check failed: {checks.database}")
        body = ReadinessResponse(status="unavailable", checks=checks, timestamp=utc_now_iso())
        return JSONResponse(status_code=503, content=body.model_dump())

    return ReadinessResponse(
        status="ready" if checks.redis == "healthy" else "degraded",
        checks=checks,
        timestamp=utc_now_iso(),
    )


@router.get("/health/live", response_model=HealthResponse)
@limiter.exempt
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    Used by Docker/orchestrators for restart decisions.
    """
    return HealthResponse(status="alive", timestamp=utc_now_iso())
