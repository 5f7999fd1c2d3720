# =============================================================================
# core/services/progress_service.py - Bookmarks & Lesson Progress
# =============================================================================
# A bookmark remembers the last section a member opened in each module
# (one row per user+module). Progress records completion per section
# (one row per user+section).
# =============================================================================

import logging
from typing import Any

from app.exceptions import SectionNotFoundError, ValidationError
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


class ProgressService:

    @staticmethod
    def get_bookmark(user_id: str, module_id: str | None) -> dict[str, Any] | None:
        if not module_id:
            raise ValidationError("module_id is required")
        return SupabaseClient.fetch_bookmark(user_id, module_id)

    @staticmethod
    def save_bookmark(user_id: str, module_id: str, section_id: str) -> dict[str, Any] | None:
        """Upsert the member's bookmark for a module."""
        bookmark = SupabaseClient.upsert_bookmark({
            "user_id": user_id,
            "module_id": module_id,
            "section_id": section_id,
            "updated_at": utc_now_iso(),
        })
        logger.debug(f"Bookmark saved for {user_id}: module {module_id} -> section {section_id}")
        return bookmark

    @staticmethod
    def list_progress(user_id: str) -> list[dict[str, Any]]:
        return SupabaseClient.list_progress(user_id)

    @staticmethod
    def record_progress(user_id: str, section_id: str, completed: bool) -> dict[str, Any] | None:
        """
        Mark a section complete or incomplete.

        The section's module_id is stored alongside so module-level
        completion can be computed without a join.

        Raises:
            SectionNotFoundError: If section_id doesn't exist
        """
        section = SupabaseClient.fetch_section(section_id)
        if not section:
            raise SectionNotFoundError(section_id)

        now = utc_now_iso()
        row = SupabaseClient.upsert_progress({
            "user_id": user_id,
            "section_id": section_id,
            "module_id": section["module_id"],
            "completed": completed,
            "updated_at": now,
        })
        logger.info(f"Progress for {user_id}: section {section_id} completed={completed}")
        return row
