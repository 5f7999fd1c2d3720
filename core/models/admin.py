# =============================================================================
# core/models/admin.py - Admin Back Office Schemas
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsRange(str, Enum):
    """Reporting window for the analytics page."""
    WEEK = "7days"
    MONTH = "30days"
    QUARTER = "90days"
    YEAR = "365days"

    @property
    def days(self) -> int:
        return int(self.value.removesuffix("days"))


class NotificationType(str, Enum):
    """Email categories members can opt into."""
    CONTENT_UPDATES = "contentUpdates"
    ACCOUNT_CHANGES = "accountChanges"
    MARKETING = "marketing"


class AdminUser(BaseModel):
    """One row of the admin users table."""

    id: str
    email: str | None = None
    created_at: datetime | None = None
    last_sign_in_at: datetime | None = None
    full_name: str | None = None
    nickname: str | None = None
    email_preferences: dict | None = None
    is_premium: bool = False
    has_manual_subscription: bool = False


class DashboardMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(default=0, alias="totalUsers")
    active_users: int = Field(default=0, alias="activeUsers")
    premium_users: int = Field(default=0, alias="premiumUsers")
    total_modules: int = Field(default=0, alias="totalModules")
    total_sections: int = Field(default=0, alias="totalSections")


class BulkEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notification_type: NotificationType = Field(..., alias="notificationType")
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    admin_secret: str = Field(..., alias="adminSecret")


class BrevoContactsSync(BaseModel):
    """Which members to push to Brevo: everyone, or those created since a date."""

    filter: str = Field(default="all", pattern="^(all|new)$")
    since: datetime | None = None


class NewContentNotification(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    html: str = Field(..., min_length=1)
