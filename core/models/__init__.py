# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - content.py: modules, sections, pagination, bookmarks, progress
# - account.py: profile, email preferences, password, contact form
# - billing.py: subscription statuses and checkout/portal/cancel bodies
# - site.py: public config flags and admin settings
# - admin.py: analytics ranges, bulk email, dashboard metrics
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Content Models
# -----------------------------------------------------------------------------
from .content import (
    BookmarkRequest,
    Module,
    ModuleCreate,
    ModuleUpdate,
    Page,
    ProgressUpdate,
    Section,
    SectionCreate,
    SectionSummary,
    SectionUpdate,
)

# -----------------------------------------------------------------------------
# Account Models
# -----------------------------------------------------------------------------
from .account import (
    BrevoSyncRequest,
    ContactRequest,
    EmailPreferences,
    PasswordChange,
    PreferencesUpdate,
    Profile,
    ProfileUpdate,
)

# -----------------------------------------------------------------------------
# Billing Models
# -----------------------------------------------------------------------------
from .billing import (
    PREMIUM_STATUSES,
    CancelRequest,
    CheckoutRequest,
    PortalRequest,
    SubscriptionStatus,
    SubscriptionSummary,
)

# -----------------------------------------------------------------------------
# Site Config Models
# -----------------------------------------------------------------------------
from .site import (
    ALLOWED_SETTING_KEYS,
    BannerUpdate,
    MaintenanceUpdate,
    PublicConfig,
    SettingItem,
    SettingsUpdate,
)

# -----------------------------------------------------------------------------
# Admin Models
# -----------------------------------------------------------------------------
from .admin import (
    AdminUser,
    AnalyticsRange,
    BrevoContactsSync,
    BulkEmailRequest,
    DashboardMetrics,
    NewContentNotification,
    NotificationType,
)

__all__ = [
    # Content
    "BookmarkRequest",
    "Module",
    "ModuleCreate",
    "ModuleUpdate",
    "Page",
    "ProgressUpdate",
    "Section",
    "SectionCreate",
    "SectionSummary",
    "SectionUpdate",
    # Account
    "BrevoSyncRequest",
    "ContactRequest",
    "EmailPreferences",
    "PasswordChange",
    "PreferencesUpdate",
    "Profile",
    "ProfileUpdate",
    # Billing
    "PREMIUM_STATUSES",
    "CancelRequest",
    "CheckoutRequest",
    "PortalRequest",
    "SubscriptionStatus",
    "SubscriptionSummary",
    # Site
    "ALLOWED_SETTING_KEYS",
    "BannerUpdate",
    "MaintenanceUpdate",
    "PublicConfig",
    "SettingItem",
    "SettingsUpdate",
    # Admin
    "AdminUser",
    "AnalyticsRange",
    "BrevoContactsSync",
    "BulkEmailRequest",
    "DashboardMetrics",
    "NewContentNotification",
    "NotificationType",
]
