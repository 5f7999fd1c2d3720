# =============================================================================
# core/services/content_service.py - Course Content Business Logic
# =============================================================================
# Catalogue reads for members (with the paywall applied) and the admin
# editor's paginated CRUD for modules and sections.
# =============================================================================

import logging
import math
from typing import Any

from app.auth.models import AuthUser
from app.exceptions import (
    CourseModuleNotFoundError,
    SectionNotFoundError,
    SubscriptionRequiredError,
    ValidationError,
)
from core.models.content import ModuleCreate, ModuleUpdate, SectionCreate, SectionUpdate
from core.services.access_service import AccessService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

SECTION_LIST_COLUMNS = "id, module_id, title, order_index, created_at, updated_at"


class ContentService:
    """
    Service for modules and sections.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Member reads
    # -------------------------------------------------------------------------

    @staticmethod
    def list_modules(user: AuthUser | None = None) -> list[dict[str, Any]]:
        """
        List modules in course order, annotated with has_access.

        Anonymous callers get has_access only on the free module.
        """
        modules = SupabaseClient.list_modules()
        is_premium = AccessService.resolve_premium(user)
        for module in modules:
            module["has_access"] = AccessService.can_access_module(module, is_premium)
        return modules

    @staticmethod
    def get_module(module_id: str) -> dict[str, Any]:
        """
        Get a module by ID.

        Raises:
            CourseModuleNotFoundError: If the module doesn't exist
        """
        module = SupabaseClient.fetch_module(module_id)
        if not module:
            raise CourseModuleNotFoundError(module_id)
        return module

    @staticmethod
    def list_sections(module_id: str | None = None) -> list[dict[str, Any]]:
        return SupabaseClient.list_sections(module_id=module_id)

    @staticmethod
    def get_section(section_id: str, user: AuthUser | None = None) -> dict[str, Any]:
        """
        Get a full section, enforcing the paywall.

        Raises:
            SectionNotFoundError: If the section doesn't exist
            SubscriptionRequiredError: If the caller may not read its module
        """
        section = SupabaseClient.fetch_section(section_id)
        if not section:
            raise SectionNotFoundError(section_id)

        module = SupabaseClient.fetch_module(section["module_id"]) or {}
        if not AccessService.can_access_module(module, AccessService.resolve_premium(user)):
            logger.info(f"Blocked section {section_id} for {'anonymous' if user is None else user.id}")
            raise SubscriptionRequiredError(section_id)

        return section

    @staticmethod
    def search(query: str | None) -> list[dict[str, Any]]:
        """
        Full-text search across modules and sections.

        Raises:
            ValidationError: If the query is empty
        """
        term = (query or "").strip()
        if not term:
            raise ValidationError("Search query is required")
        results = SupabaseClient.rpc("search_content", {"search_term": term})
        return results or []

    # -------------------------------------------------------------------------
    # Admin editor
    # -------------------------------------------------------------------------

    @staticmethod
    def _page(rows: list[dict[str, Any]], total: int, page: int, page_size: int) -> dict[str, Any]:
        return {
            "items": rows,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size) if total else 0,
        }

    @staticmethod
    def list_modules_page(page: int = 1, page_size: int = 10, search: str | None = None) -> dict[str, Any]:
        rows, total = SupabaseClient.paginate("modules", page, page_size, search=search)
        return ContentService._page(rows, total, page, page_size)

    @staticmethod
    def list_sections_page(
        page: int = 1,
        page_size: int = 10,
        search: str | None = None,
        module_id: str | None = None,
    ) -> dict[str, Any]:
        """Sections page without content bodies, optionally for one module."""
        rows, total = SupabaseClient.paginate(
            "sections",
            page,
            page_size,
            columns=SECTION_LIST_COLUMNS,
            search=search,
            filters={"module_id": module_id} if module_id else None,
        )
        return ContentService._page(rows, total, page, page_size)

    @staticmethod
    def create_module(data: ModuleCreate) -> dict[str, Any]:
        module = SupabaseClient.insert_row("modules", data.model_dump())
        logger.info(f"Created module: {module['id']}")
        return module

    @staticmethod
    def update_module(module_id: str, data: ModuleUpdate) -> dict[str, Any]:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return ContentService.get_module(module_id)

        changes["updated_at"] = utc_now_iso()
        module = SupabaseClient.update_row("modules", module_id, changes)
        if not module:
            raise CourseModuleNotFoundError(module_id)
        logger.info(f"Updated module {module_id}: {list(changes)}")
        return module

    @staticmethod
    def delete_module(module_id: str) -> None:
        if not SupabaseClient.delete_row("modules", module_id):
            raise CourseModuleNotFoundError(module_id)
        logger.info(f"Deleted module: {module_id}")

    @staticmethod
    def get_section_for_edit(section_id: str) -> dict[str, Any]:
        """Full section for the editor (no paywall)."""
        section = SupabaseClient.fetch_section(section_id)
        if not section:
            raise SectionNotFoundError(section_id)
        return section

    @staticmethod
    def create_section(data: SectionCreate) -> dict[str, Any]:
        """
        Create a section under an existing module.

        Raises:
            CourseModuleNotFoundError: If module_id doesn't exist
        """
        ContentService.get_module(data.module_id)
        section = SupabaseClient.insert_row("sections", data.model_dump())
        logger.info(f"Created section {section['id']} in module {data.module_id}")
        return section

    @staticmethod
    def update_section(section_id: str, data: SectionUpdate) -> dict[str, Any]:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return ContentService.get_section_for_edit(section_id)
        if "module_id" in changes:
            ContentService.get_module(changes["module_id"])

        changes["updated_at"] = utc_now_iso()
        section = SupabaseClient.update_row("sections", section_id, changes)
        if not section:
            raise SectionNotFoundError(section_id)
        logger.info(f"Updated section {section_id}: {list(changes)}")
        return section

    @staticmethod
    def delete_section(section_id: str) -> None:
        if not SupabaseClient.delete_row("sections", section_id):
            raise SectionNotFoundError(section_id)
        logger.info(f"Deleted section: {section_id}")
