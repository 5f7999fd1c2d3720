# =============================================================================
# core/services/profile_service.py - Member Profile & Account Settings
# =============================================================================
# Profile edits, email preferences (mirrored to Brevo) and password change.
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import ForbiddenError, ProfileNotFoundError, ValidationError
from core.models.account import EmailPreferences, ProfileUpdate
from core.models.billing import PREMIUM_STATUSES, SubscriptionSummary
from lib.brevo import BrevoClient, BrevoError
from lib.supabase_client import SupabaseClient
from lib.utils import to_unix, utc_now_iso

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class ProfileService:
    """Service for the account page."""

    @staticmethod
    def get_profile(user_id: str) -> dict[str, Any]:
        """
        Raises:
            ProfileNotFoundError: If no profile row exists
        """
        profile = SupabaseClient.fetch_profile(user_id)
        if not profile:
            raise ProfileNotFoundError(user_id)
        return profile

    @staticmethod
    def update_profile(user_id: str, data: ProfileUpdate) -> dict[str, Any]:
        """
        Update name, nickname and avatar colour.

        All three are required; blanks are rejected.
        """
        values = {
            "full_name": data.full_name.strip(),
            "nickname": data.nickname.strip(),
            "avatar_color": data.avatar_color.strip(),
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValidationError(
                "Full name, nickname and avatar color are required",
                details={"missing": missing},
            )

        values["updated_at"] = utc_now_iso()
        profile = SupabaseClient.update_profile(user_id, values)
        if not profile:
            raise ProfileNotFoundError(user_id)
        logger.info(f"Updated profile for {user_id}")
        return profile

    @staticmethod
    def get_subscription_summary(user_id: str) -> SubscriptionSummary | None:
        """Latest active/trialing subscription, or None for free members."""
        subscription = SupabaseClient.fetch_latest_subscription(
            user_id, statuses=PREMIUM_STATUSES, with_plan=True
        )
        if not subscription:
            return None

        plan = subscription.get("plan") or {}
        return SubscriptionSummary(
            id=subscription["id"],
            status=subscription["status"],
            plan_name=plan.get("name"),
            current_period_end=to_unix(subscription.get("current_period_end")),
            cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
        )

    # -------------------------------------------------------------------------
    # Email preferences
    # -------------------------------------------------------------------------

    @staticmethod
    def update_preferences(user: AuthUser, preferences: EmailPreferences) -> dict[str, bool]:
        """
        Store preferences on the profile and mirror them to Brevo.

        A Brevo failure is logged; the stored preferences stand.
        """
        stored = preferences.as_stored()
        profile = SupabaseClient.update_profile(
            str(user.id),
            {"email_preferences": stored, "updated_at": utc_now_iso()},
        )
        if not profile:
            raise ProfileNotFoundError(str(user.id))

        if user.email:
            ProfileService.sync_brevo_contact(
                user.email,
                stored,
                full_name=profile.get("full_name"),
                nickname=profile.get("nickname"),
            )
        return stored

    @staticmethod
    def sync_brevo_contact(
        email: str,
        preferences: dict[str, Any],
        full_name: str | None = None,
        nickname: str | None = None,
    ) -> bool:
        """
        Push one contact to Brevo.

        Returns:
            True if synced, False if Brevo is unconfigured or rejected it
        """
        if not settings.brevo_configured:
            logger.info(f"Brevo not configured; skipping contact sync for {email}")
            return False
        try:
            BrevoClient().sync_contact(email, preferences, full_name=full_name, nickname=nickname)
            return True
        except BrevoError as e:
            logger.error(f"Brevo sync failed for {email}: {e}")
            return False

    @staticmethod
    def sync_brevo_for_user(
        user: AuthUser,
        email: str,
        target_user_id: str,
        preferences: EmailPreferences | None = None,
    ) -> bool:
        """
        Explicit sync requested by the client.

        Uses the stored preferences when none are sent.

        Raises:
            ForbiddenError: If target_user_id is not the caller
        """
        if target_user_id != str(user.id):
            raise ForbiddenError("Cannot sync another user's contact")

        profile = SupabaseClient.fetch_profile(target_user_id) or {}
        stored = preferences.as_stored() if preferences else (profile.get("email_preferences") or {})
        return ProfileService.sync_brevo_contact(
            email,
            stored,
            full_name=profile.get("full_name"),
            nickname=profile.get("nickname"),
        )

    # -------------------------------------------------------------------------
    # Password
    # -------------------------------------------------------------------------

    @staticmethod
    def change_password(user: AuthUser, current_password: str, new_password: str) -> None:
        """
        Change the member's password after re-checking the current one.

        Raises:
            ValidationError: Missing fields, short password, wrong current password
        """
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
        if not user.email:
            raise ValidationError("Account has no email address")

        if not SupabaseClient.verify_password(user.email, current_password):
            logger.warning(f"Wrong current password on change attempt for {user.id}")
            raise ValidationError("Current password is incorrect")

        SupabaseClient.set_password(user.id, new_password)
        logger.info(f"Password changed for {user.id}")
