# =============================================================================
# core/services/access_service.py - Paywall Rules
# =============================================================================
# Decides who may read which module:
# - the first module (order_index == 1) is a free preview
# - everything else needs an active or trialing subscription
# - the admin sees everything
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from core.models.billing import PREMIUM_STATUSES
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

FREE_MODULE_ORDER_INDEX = 1


class AccessService:
    """Subscription-based access checks."""

    @staticmethod
    def is_free_module(module: dict[str, Any]) -> bool:
        return module.get("order_index") == FREE_MODULE_ORDER_INDEX

    @staticmethod
    def has_premium(user_id: str) -> bool:
        """True when the user has an active or trialing subscription."""
        subscription = SupabaseClient.fetch_latest_subscription(user_id, statuses=PREMIUM_STATUSES)
        return subscription is not None

    @staticmethod
    def resolve_premium(user: AuthUser | None) -> bool:
        """Premium status for an optional caller; admins count as premium."""
        if user is None:
            return False
        if user.is_admin:
            return True
        return AccessService.has_premium(str(user.id))

    @staticmethod
    def can_access_module(module: dict[str, Any], is_premium: bool) -> bool:
        return is_premium or AccessService.is_free_module(module)
