# =============================================================================
# app/routers/site_config.py - Public Site Configuration
# =============================================================================
# Flags the web client reads on every page load, and the CSRF token bootstrap.
# =============================================================================

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.middleware.csrf import CSRF_COOKIE_NAME, CSRF_RESPONSE_HEADER, get_csrf_token
from core.models.site import PublicConfig
from core.services.config_service import ConfigService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["Config"])


@router.get("/public", response_model=PublicConfig)
async def get_public_config():
    """
    Maintenance mode and announcement banner.

    On a database failure responds 500 with safe defaults so the client
    can still render.
    """
    try:
        return ConfigService.get_public_config()
    except SupabaseClientError as e:
        logger.error(f"Failed to load public config: {e}")
        return JSONResponse(status_code=500, content=PublicConfig().model_dump(by_alias=True))


@router.get("/csrf-token")
async def get_csrf_token_endpoint(request: Request):
    """Issue the CSRF token and make sure the matching cookie is set."""
    token = get_csrf_token(request)
    response = JSONResponse(content={"csrfToken": token})
    response.headers[CSRF_RESPONSE_HEADER] = token
    if request.cookies.get(CSRF_COOKIE_NAME) != token:
        response.set_cookie(
            CSRF_COOKIE_NAME,
            token,
            httponly=False,
            samesite="lax",
            secure=settings.is_production,
            domain=settings.COOKIE_DOMAIN,
            path="/",
        )
    return response
