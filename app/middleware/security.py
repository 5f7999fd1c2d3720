# =============================================================================
# app/middleware/security.py - Security Headers & Body Limit
# =============================================================================

from typing import Callable
from urllib.parse import urlparse

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings


def build_content_security_policy(supabase_url: str) -> str:
    """CSP allowing the Stripe checkout scripts and the Supabase project."""
    supabase_host = urlparse(supabase_url).netloc
    supabase_origin = f"https://{supabase_host}" if supabase_host else ""
    directives = {
        "default-src": ["'self'"],
        "script-src": ["'self'", "https://js.stripe.com"],
        "style-src": ["'self'", "'unsafe-inline'", "https://fonts.googleapis.com"],
        "font-src": ["'self'", "https://fonts.gstatic.com"],
        "img-src": ["'self'", "data:", supabase_origin],
        "connect-src": ["'self'", supabase_origin, f"wss://{supabase_host}", "https://api.stripe.com"],
        "frame-src": ["https://js.stripe.com", "https://hooks.stripe.com"],
        "object-src": ["'none'"],
        "base-uri": ["'self'"],
        "form-action": ["'self'"],
    }
    return "; ".join(
        f"{name} {' '.join(source for source in sources if source)}"
        for name, sources in directives.items()
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers:
    - Content-Security-Policy
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Strict-Transport-Security (production only)
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.csp = build_content_security_policy(settings.SUPABASE_URL)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self.csp
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject requests whose declared body exceeds max_bytes.

    The Stripe webhook is exempt; event payloads routinely exceed
    the limit meant for JSON form submissions. Paths under
    large_prefixes (admin content editing) get large_max_bytes instead.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_bytes: int,
        exempt_prefixes: tuple[str, ...] = ("/api/webhooks/",),
        large_prefixes: tuple[str, ...] = ("/api/admin/",),
        large_max_bytes: int | None = None,
    ):
        super().__init__(app)
        self.max_bytes = max_bytes
        self.exempt_prefixes = exempt_prefixes
        self.large_prefixes = large_prefixes
        self.large_max_bytes = large_max_bytes or max_bytes

    def limit_for(self, path: str) -> int | None:
        if path.startswith(self.exempt_prefixes):
            return None
        if path.startswith(self.large_prefixes):
            return self.large_max_bytes
        return self.max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        limit = self.limit_for(request.url.path)
        if limit is not None:
            length = request.headers.get("content-length")
            if length and length.isdigit() and int(length) > limit:
                return JSONResponse(
                    status_code=413,
                    content={"detail": "Request body too large", "code": "PAYLOAD_TOO_LARGE"},
                )
        return await call_next(request)
