# =============================================================================
# app/routers/content.py - Course Catalogue Endpoints
# =============================================================================
# Modules, sections and search. Reads work anonymously; a bearer token
# unlocks premium content.
# =============================================================================

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user_optional, AuthUser
from core.models.content import Module, Section, SectionSummary
from core.services.content_service import ContentService

router = APIRouter(tags=["Content"])


# =============================================================================
# Modules
# =============================================================================

@router.get("/modules", response_model=list[Module])
async def list_modules(
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    List modules in course order.

    Each module carries has_access for the caller.
    """
    return ContentService.list_modules(user)


@router.get("/modules/{module_id}", response_model=Module)
async def get_module(
    module_id: Annotated[str, Path(description="Module ID")],
):
    return ContentService.get_module(module_id)


# =============================================================================
# Sections
# =============================================================================

@router.get("/sections", response_model=list[SectionSummary])
async def list_sections(
    module_id: Annotated[str | None, Query(description="Only sections of this module")] = None,
):
    """List sections in order, without their content."""
    return ContentService.list_sections(module_id)


@router.get("/sections/{section_id}", response_model=Section)
async def get_section(
    section_id: Annotated[str, Path(description="Section ID")],
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Get a full section.

    Sections of the first module are free. Everything else needs a
    premium subscription; otherwise 403 SUBSCRIPTION_REQUIRED.
    """
    return ContentService.get_section(section_id, user)


# =============================================================================
# Search
# =============================================================================

@router.get("/search")
async def search_content(
    query: Annotated[str | None, Query(description="Search term")] = None,
):
    """Full-text search over module and section titles and content."""
    return ContentService.search(query)
