# =============================================================================
# app/middleware/rate_limit.py - Rate Limiting
# =============================================================================
# slowapi limiter shared by the whole API.
#
# - Every /api route gets the default limit through SlowAPIMiddleware.
# - The /auth router depends on enforce_auth_limit (AUTH_LIMIT per IP),
#   which runs before the bearer token is verified so rejected tokens
#   count too.
# - The password change is decorated with AUTH_LIMIT keyed per user.
#
# Usage:
#   router = APIRouter(prefix="/auth", dependencies=[Depends(enforce_auth_limit)])
#
#   @router.put("/password")
#   @limiter.limit(AUTH_LIMIT)
#   async def change_password(request: Request, ...):
# =============================================================================

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

AUTH_LIMIT = "5 per 15 minutes"
API_LIMIT = "100 per minute"


def get_client_ip(request: Request) -> str:
    """
    Client IP, honouring X-Forwarded-For so limits work behind the
    reverse proxy.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


def get_client_identifier(request: Request) -> str:
    """
    Identify the caller for rate-limit buckets.

    Uses the authenticated user when a dependency has already put one
    on request.state, otherwise the client IP.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return get_client_ip(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[API_LIMIT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=not settings.DISABLE_RATE_LIMIT,
)

auth_limit = parse(AUTH_LIMIT)


async def enforce_auth_limit(request: Request) -> None:
    """
    Count a request against the per-IP auth limit.

    Used as a router dependency so it resolves before get_current_user.

    Raises:
        RateLimitedError: Once the IP has used up AUTH_LIMIT
    """
    if not limiter.enabled:
        return

    key = get_client_ip(request)
    if limiter.limiter.hit(auth_limit, "auth", key):
        return

    reset_time = limiter.limiter.get_window_stats(auth_limit, "auth", key)[0]
    logger.warning(f"Auth rate limit exceeded for {key} on {request.url.path}")
    raise RateLimitedError(retry_after=max(1, int(reset_time - time.time())))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Return a 429 with the same body shape as other API errors.

    SlowAPIMiddleware calls this without awaiting, so it must stay
    synchronous.
    """
    logger.warning(f"Rate limit exceeded ({exc.detail}) for {get_client_identifier(request)} on {request.url.path}")
    error = RateLimitedError(retry_after=60)
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers={"Retry-After": str(error.retry_after)},
    )
