# =============================================================================
# core/services/admin_service.py - Admin Back Office
# =============================================================================
# User directory, dashboard counters, content backup, Brevo bulk sync and
# the audit trail of admin actions.
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from core.models.admin import AdminUser, DashboardMetrics
from core.models.billing import PREMIUM_STATUSES
from core.services.profile_service import ProfileService
from core.services.subscription_service import is_manual_subscription
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now

logger = logging.getLogger(__name__)

ACTIVE_USER_WINDOW = timedelta(days=30)

# "new" contacts sync without an explicit since date
NEW_CONTACT_WINDOW = timedelta(hours=24)

# Profiles that never saved preferences are treated as opted in
DEFAULT_SYNC_PREFERENCES = {"contentUpdates": True, "accountChanges": True, "marketing": True}


class AdminService:

    @staticmethod
    def list_users() -> dict[str, Any]:
        """
        Every auth user joined with profile and subscription flags.

        Returns:
            {"users": [AdminUser...], "total": n}
        """
        auth_users = SupabaseClient.list_auth_users()
        profiles = {
            p["id"]: p
            for p in SupabaseClient.list_profiles("id, full_name, nickname, email_preferences")
        }

        premium_ids: set[str] = set()
        manual_ids: set[str] = set()
        for subscription in SupabaseClient.list_subscriptions(PREMIUM_STATUSES):
            premium_ids.add(subscription["user_id"])
            if is_manual_subscription(subscription["id"]):
                manual_ids.add(subscription["user_id"])

        users = []
        for auth_user in auth_users:
            user_id = str(auth_user.id)
            profile = profiles.get(user_id, {})
            users.append(AdminUser(
                id=user_id,
                email=auth_user.email,
                created_at=getattr(auth_user, "created_at", None),
                last_sign_in_at=getattr(auth_user, "last_sign_in_at", None),
                full_name=profile.get("full_name"),
                nickname=profile.get("nickname"),
                email_preferences=profile.get("email_preferences"),
                is_premium=user_id in premium_ids,
                has_manual_subscription=user_id in manual_ids,
            ))

        return {"users": users, "total": len(users)}

    @staticmethod
    def dashboard_metrics() -> DashboardMetrics:
        since = (utc_now() - ACTIVE_USER_WINDOW).isoformat()
        premium_users = {s["user_id"] for s in SupabaseClient.list_subscriptions(PREMIUM_STATUSES)}

        return DashboardMetrics(
            total_users=SupabaseClient.rpc("count_total_users") or 0,
            active_users=len(SupabaseClient.list_profiles_updated_since(since)),
            premium_users=len(premium_users),
            total_modules=SupabaseClient.count_rows("modules"),
            total_sections=SupabaseClient.count_rows("sections"),
        )

    @staticmethod
    def content_backup() -> Any:
        """All modules and sections as exported by get_content_backup()."""
        return SupabaseClient.rpc("get_content_backup")

    @staticmethod
    def record_event(
        event_type: str,
        admin_id: str,
        details: dict[str, Any],
        ip_address: str | None = None,
    ) -> None:
        """
        Append an admin action to the security event log.

        Never raises: a failed audit write is logged as a warning.
        """
        try:
            SupabaseClient.rpc("record_security_event", {
                "p_event_type": event_type,
                "p_user_id": admin_id,
                "p_details": details,
                "p_severity": "info",
                "p_ip_address": ip_address,
            })
        except SupabaseClientError as e:
            logger.warning(f"Could not record security event {event_type}: {e}")

    @staticmethod
    def resolve_sync_since(filter_name: str, since: datetime | None) -> datetime | None:
        """Cutoff for a Brevo sync request; None means every profile."""
        if filter_name != "new":
            return None
        return since or utc_now() - NEW_CONTACT_WINDOW

    @staticmethod
    def sync_brevo_contacts(
        since: datetime | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, int]:
        """
        Push profiles (all, or created after `since`) to Brevo.

        Returns:
            {"synced", "failed", "total"}
        """
        profiles = SupabaseClient.list_profiles(
            "id, email, full_name, nickname, email_preferences",
            created_since=since.isoformat() if since else None,
        )

        synced = failed = 0
        total = len(profiles)
        for index, profile in enumerate(profiles, start=1):
            email = profile.get("email")
            if not email:
                auth_user = SupabaseClient.get_auth_user(profile["id"])
                email = getattr(auth_user, "email", None)

            if email and ProfileService.sync_brevo_contact(
                email,
                profile.get("email_preferences") or DEFAULT_SYNC_PREFERENCES,
                full_name=profile.get("full_name"),
                nickname=profile.get("nickname"),
            ):
                synced += 1
            else:
                failed += 1

            if on_progress:
                on_progress(index, total)

        logger.info(f"Brevo sync: {synced} synced, {failed} failed of {total}")
        return {"synced": synced, "failed": failed, "total": total}
