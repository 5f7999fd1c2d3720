# =============================================================================
# app/middleware/ - HTTP Middleware
# =============================================================================
# - csrf.py: double-submit cookie CSRF protection
# - security.py: security headers and request body limit
# - rate_limit.py: slowapi limiter and 429 handler
# =============================================================================

from app.middleware.csrf import CSRFMiddleware, get_csrf_token
from app.middleware.security import SecurityHeadersMiddleware, BodySizeLimitMiddleware
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "CSRFMiddleware",
    "get_csrf_token",
    "SecurityHeadersMiddleware",
    "BodySizeLimitMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
]
