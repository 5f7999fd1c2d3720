# =============================================================================
# app/middleware/csrf.py - CSRF Double-Submit Cookie
# =============================================================================
# The browser client reads the token from the x-csrf-token-value response
# header (or GET /api/config/csrf-token), keeps the cookie, and echoes the
# token back in x-csrf-token-header on every state-changing request.
# =============================================================================

import logging
import secrets
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "csrf_token_cookie"
CSRF_HEADER_NAME = "x-csrf-token-header"
CSRF_RESPONSE_HEADER = "x-csrf-token-value"

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
EXEMPT_PREFIXES = ("/health", "/api/webhooks/")


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def get_csrf_token(request: Request) -> str:
    """
    Token for this request.

    The middleware stores it on request.state; routes running without
    the middleware (tests, CSRF disabled) fall back to the cookie.
    """
    return (
        getattr(request.state, "csrf_token", None)
        or request.cookies.get(CSRF_COOKIE_NAME)
        or generate_csrf_token()
    )


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection.

    - Safe methods and exempt paths pass through.
    - Otherwise the header token must match the cookie token.
    - Every response (re)sets the cookie and exposes the token header.
    """

    def __init__(self, app: ASGIApp, exempt_prefixes: tuple[str, ...] = EXEMPT_PREFIXES):
        super().__init__(app)
        self.exempt_prefixes = exempt_prefixes

    def _is_exempt(self, request: Request) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return request.url.path.startswith(self.exempt_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        cookie_token = request.cookies.get(CSRF_COOKIE_NAME)

        if not self._is_exempt(request):
            header_token = request.headers.get(CSRF_HEADER_NAME)
            if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
                logger.warning(f"CSRF validation failed for {request.method} {request.url.path}")
                return JSONResponse(
                    status_code=403,
                    content={"detail": "Invalid CSRF token", "code": "CSRF_INVALID"},
                )

        token = cookie_token or generate_csrf_token()
        request.state.csrf_token = token

        response = await call_next(request)

        response.headers[CSRF_RESPONSE_HEADER] = token
        if cookie_token != token:
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
