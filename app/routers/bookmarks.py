# =============================================================================
# app/routers/bookmarks.py - Reading Position Endpoints
# =============================================================================
# One bookmark per member per module: the section they were last reading.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import get_current_user, AuthUser
from core.models.content import BookmarkRequest
from core.services.progress_service import ProgressService

router = APIRouter(prefix="/bookmarks", tags=["Progress"])


@router.get("")
async def get_bookmark(
    module_id: Annotated[str | None, Query(description="Module ID")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """Bookmark for the module, or null if the member has none yet."""
    return ProgressService.get_bookmark(str(user.id), module_id)


@router.post("")
async def save_bookmark(
    request: BookmarkRequest,
    user: AuthUser = Depends(get_current_user),
):
    return ProgressService.save_bookmark(str(user.id), request.module_id, request.section_id)
