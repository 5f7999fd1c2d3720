# =============================================================================
# core/services/config_service.py - Site Configuration
# =============================================================================
# Reads and writes the string key/value rows of the config table.
# Flags are stored as "true"/"false" strings.
# =============================================================================

import logging

from app.exceptions import ValidationError
from core.models.site import (
    ALLOWED_SETTING_KEYS,
    BANNER_ENABLED_KEY,
    BANNER_TEXT_KEY,
    MAINTENANCE_KEY,
    PublicConfig,
    SettingItem,
)
from lib.supabase_client import SupabaseClient
from lib.utils import as_bool_string, utc_now_iso

logger = logging.getLogger(__name__)

PUBLIC_KEYS = [MAINTENANCE_KEY, BANNER_ENABLED_KEY, BANNER_TEXT_KEY]


class ConfigService:

    @staticmethod
    def get_public_config() -> PublicConfig:
        """
        Maintenance and banner flags for every visitor.

        The banner text is blanked while the banner is disabled.

        Raises:
            SupabaseClientError: If the config table can't be read
        """
        values = SupabaseClient.fetch_config(PUBLIC_KEYS)
        banner_enabled = values.get(BANNER_ENABLED_KEY) == "true"
        return PublicConfig(
            maintenance_mode=values.get(MAINTENANCE_KEY) == "true",
            announcement_banner_enabled=banner_enabled,
            announcement_banner_text=values.get(BANNER_TEXT_KEY, "") if banner_enabled else "",
        )

    @staticmethod
    def set_maintenance(enable: bool) -> None:
        SupabaseClient.upsert_config({MAINTENANCE_KEY: as_bool_string(enable)}, utc_now_iso())
        logger.info(f"Maintenance mode {'enabled' if enable else 'disabled'}")

    @staticmethod
    def set_banner(enabled: bool, text: str) -> None:
        SupabaseClient.upsert_config(
            {BANNER_ENABLED_KEY: as_bool_string(enabled), BANNER_TEXT_KEY: text.strip()},
            utc_now_iso(),
        )
        logger.info(f"Announcement banner {'enabled' if enabled else 'disabled'}")

    @staticmethod
    def get_settings() -> dict[str, str]:
        """Admin-editable settings currently stored."""
        return SupabaseClient.fetch_config(sorted(ALLOWED_SETTING_KEYS))

    @staticmethod
    def update_settings(items: list[SettingItem]) -> dict[str, str]:
        """
        Write admin settings.

        Raises:
            ValidationError: If any key is outside the allowlist (nothing is written)
        """
        rejected = sorted({item.key for item in items} - ALLOWED_SETTING_KEYS)
        if rejected:
            raise ValidationError(
                f"Unknown setting keys: {', '.join(rejected)}",
                details={"rejected": rejected, "allowed": sorted(ALLOWED_SETTING_KEYS)},
            )

        values = {
            item.key: as_bool_string(item.value) if isinstance(item.value, bool) else str(item.value)
            for item in items
        }
        SupabaseClient.upsert_config(values, utc_now_iso())
        logger.info(f"Updated settings: {sorted(values)}")
        return values
