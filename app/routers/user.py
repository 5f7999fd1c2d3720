# =============================================================================
# app/routers/user.py - Member Account Endpoints
# =============================================================================
# Profile, subscription summary, reading progress, password and email
# preferences. All endpoints require authentication.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.auth import get_current_user, AuthUser
from app.middleware.rate_limit import limiter, AUTH_LIMIT
from core.models.account import (
    BrevoSyncRequest,
    PasswordChange,
    PreferencesUpdate,
    Profile,
    ProfileUpdate,
)
from core.models.billing import SubscriptionSummary
from core.models.content import ProgressUpdate
from core.services.profile_service import ProfileService
from core.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["User"])


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile", response_model=Profile)
async def get_profile(user: AuthUser = Depends(get_current_user)):
    return ProfileService.get_profile(str(user.id))


@router.put("/profile", response_model=Profile)
async def update_profile(
    request: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update full name, nickname and avatar colour.

    All three are required.
    """
    return ProfileService.update_profile(str(user.id), request)


@router.get("/subscription", response_model=Optional[SubscriptionSummary])
async def get_subscription(user: AuthUser = Depends(get_current_user)):
    """Current premium subscription, or null for free members."""
    return ProfileService.get_subscription_summary(str(user.id))


# =============================================================================
# Progress
# =============================================================================

@router.get("/progress")
async def list_progress(user: AuthUser = Depends(get_current_user)):
    return ProgressService.list_progress(str(user.id))


@router.post("/progress")
async def record_progress(
    request: ProgressUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Mark a section complete or incomplete."""
    return ProgressService.record_progress(str(user.id), request.section_id, request.completed)


# =============================================================================
# Password
# =============================================================================

@router.put("/password")
@limiter.limit(AUTH_LIMIT)
async def change_password(
    request: Request,
    body: PasswordChange,
    user: AuthUser = Depends(get_current_user),
):
    """
    Change password after verifying the current one.

    Limited per member: the limiter keys on the authenticated user.
    """
    ProfileService.change_password(user, body.current_password, body.new_password)
    return {"success": True, "message": "Password updated successfully"}


# =============================================================================
# Email preferences
# =============================================================================

@router.put("/preferences")
async def update_preferences(
    request: PreferencesUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Save email preferences and mirror them to Brevo."""
    preferences = ProfileService.update_preferences(user, request.preferences)
    return {"success": True, "preferences": preferences}


@router.post("/sync-brevo")
async def sync_brevo(
    request: BrevoSyncRequest,
    user: AuthUser = Depends(get_current_user),
):
    synced = ProfileService.sync_brevo_for_user(
        user,
        email=request.email,
        target_user_id=request.user_id,
        preferences=request.preferences,
    )
    return {"success": synced}
