# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .access_service import AccessService
from .content_service import ContentService
from .progress_service import ProgressService
from .profile_service import ProfileService
from .notification_service import NotificationService
from .subscription_service import SubscriptionService
from .webhook_service import StripeWebhookService
from .config_service import ConfigService
from .admin_service import AdminService
from .analytics_service import AnalyticsService

__all__ = [
    "AccessService",
    "ContentService",
    "ProgressService",
    "ProfileService",
    "NotificationService",
    "SubscriptionService",
    "StripeWebhookService",
    "ConfigService",
    "AdminService",
    "AnalyticsService",
]
