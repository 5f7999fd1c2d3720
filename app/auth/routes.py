# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# Every route counts against the per-IP auth limit before the token is
# checked.
# =============================================================================

import logging
from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from app.middleware.rate_limit import enforce_auth_limit
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    dependencies=[Depends(enforce_auth_limit)],
)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Falls back to token claims when the profile row is missing
    (the signup trigger may not have run yet).
    """
    profile = None
    try:
        profile = SupabaseClient.fetch_profile(user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user profile: {e}")

    profile = profile or {}
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.get("full_name"),
        nickname=profile.get("nickname"),
        avatar_color=profile.get("avatar_color"),
        avatar_url=profile.get("avatar_url"),
        is_admin=user.is_admin,
    )


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
        "is_admin": user.is_admin,
    }
