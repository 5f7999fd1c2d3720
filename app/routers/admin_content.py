# =============================================================================
# app/routers/admin_content.py - Content Editor Endpoints
# =============================================================================
# Paginated CRUD for modules and sections. Admin only.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request

from app.auth import require_admin, AuthUser
from app.routers.admin import audit
from core.models.content import (
    Module,
    ModuleCreate,
    ModuleUpdate,
    Page,
    Section,
    SectionCreate,
    SectionUpdate,
)
from core.services.content_service import ContentService

router = APIRouter(prefix="/admin", tags=["Admin Content"])

PageNumber = Annotated[int, Query(ge=1, description="Page number")]
PageSize = Annotated[int, Query(ge=1, le=100, description="Items per page")]
Search = Annotated[str | None, Query(description="Case-insensitive title match")]


# =============================================================================
# Modules
# =============================================================================

@router.get("/modules", response_model=Page)
async def list_modules(
    page: PageNumber = 1,
    page_size: PageSize = 10,
    search: Search = None,
    admin: AuthUser = Depends(require_admin),
):
    return ContentService.list_modules_page(page=page, page_size=page_size, search=search)


@router.post("/modules", response_model=Module, status_code=201)
async def create_module(
    request: Request,
    body: ModuleCreate,
    admin: AuthUser = Depends(require_admin),
):
    module = ContentService.create_module(body)
    audit(request, admin, "module_created", module_id=module["id"], title=module.get("title"))
    return module


@router.get("/modules/{module_id}", response_model=Module)
async def get_module(
    module_id: Annotated[str, Path(description="Module ID")],
    admin: AuthUser = Depends(require_admin),
):
    return ContentService.get_module(module_id)


@router.put("/modules/{module_id}", response_model=Module)
async def update_module(
    request: Request,
    module_id: Annotated[str, Path(description="Module ID")],
    body: ModuleUpdate,
    admin: AuthUser = Depends(require_admin),
):
    """Update only the fields sent."""
    module = ContentService.update_module(module_id, body)
    audit(request, admin, "module_updated", module_id=module_id)
    return module


@router.delete("/modules/{module_id}")
async def delete_module(
    request: Request,
    module_id: Annotated[str, Path(description="Module ID")],
    admin: AuthUser = Depends(require_admin),
):
    ContentService.delete_module(module_id)
    audit(request, admin, "module_deleted", module_id=module_id)
    return {"success": True}


# =============================================================================
# Sections
# =============================================================================

@router.get("/sections", response_model=Page)
async def list_sections(
    page: PageNumber = 1,
    page_size: PageSize = 10,
    search: Search = None,
    module_id: Annotated[str | None, Query(description="Only sections of this module")] = None,
    admin: AuthUser = Depends(require_admin),
):
    """Sections page without content bodies."""
    return ContentService.list_sections_page(
        page=page,
        page_size=page_size,
        search=search,
        module_id=module_id,
    )


@router.post("/sections", response_model=Section, status_code=201)
async def create_section(
    request: Request,
    body: SectionCreate,
    admin: AuthUser = Depends(require_admin),
):
    section = ContentService.create_section(body)
    audit(request, admin, "section_created", section_id=section["id"], module_id=body.module_id)
    return section


@router.get("/sections/{section_id}", response_model=Section)
async def get_section(
    section_id: Annotated[str, Path(description="Section ID")],
    admin: AuthUser = Depends(require_admin),
):
    return ContentService.get_section_for_edit(section_id)


@router.put("/sections/{section_id}", response_model=Section)
async def update_section(
    request: Request,
    section_id: Annotated[str, Path(description="Section ID")],
    body: SectionUpdate,
    admin: AuthUser = Depends(require_admin),
):
    section = ContentService.update_section(section_id, body)
    audit(request, admin, "section_updated", section_id=section_id)
    return section


@router.delete("/sections/{section_id}")
async def delete_section(
    request: Request,
    section_id: Annotated[str, Path(description="Section ID")],
    admin: AuthUser = Depends(require_admin),
):
    ContentService.delete_section(section_id)
    audit(request, admin, "section_deleted", section_id=section_id)
    return {"success": True}
