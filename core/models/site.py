# =============================================================================
# core/models/site.py - Site Configuration Schemas
# =============================================================================
# Site-wide flags live in the config table as string key/value rows.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


MAINTENANCE_KEY = "maintenance_mode"
BANNER_ENABLED_KEY = "announcement_banner_enabled"
BANNER_TEXT_KEY = "announcement_banner_text"

# Keys the admin settings page may write
ALLOWED_SETTING_KEYS = frozenset({
    "site_name",
    "contact_email",
    "enable_notifications",
    "session_timeout",
    "max_login_attempts",
    "enable_logging",
    "default_lang",
})


class PublicConfig(BaseModel):
    """Flags every visitor needs before rendering a page."""

    model_config = ConfigDict(populate_by_name=True)

    maintenance_mode: bool = Field(default=False, alias="maintenanceMode")
    announcement_banner_enabled: bool = Field(default=False, alias="announcementBannerEnabled")
    announcement_banner_text: str = Field(default="", alias="announcementBannerText")


class MaintenanceUpdate(BaseModel):
    enable: bool


class BannerUpdate(BaseModel):
    enabled: bool
    text: str = Field(default="", max_length=500)


class SettingItem(BaseModel):
    key: str = Field(..., min_length=1)
    value: str | int | bool


class SettingsUpdate(BaseModel):
    settings: list[SettingItem] = Field(..., min_length=1)
