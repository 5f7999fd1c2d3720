# =============================================================================
# core/models/content.py - Course Content Schemas
# =============================================================================
# These models define the API contract for the course catalogue:
# - Module / Section: rows returned to clients
# - *Create / *Update: admin editor payloads
# - Page: paginated admin listings
# - BookmarkRequest / ProgressUpdate: member activity
#
# A module is one chapter of the course; a section is one lesson inside it.
# Modules and sections are both ordered by order_index (1-based).
# =============================================================================

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Module(BaseModel):
    """
    A course module as listed in the dashboard.

    has_access is computed per caller: the first module is free,
    the rest require a premium subscription.
    """

    id: str
    title: str
    description: str | None = None
    slug: str | None = None
    order_index: int = Field(..., ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    has_access: bool | None = Field(
        default=None,
        description="Whether the caller may open this module's sections"
    )


class SectionSummary(BaseModel):
    """Section row without its content body (listings)."""

    id: str
    module_id: str
    title: str
    order_index: int = Field(..., ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Section(SectionSummary):
    """Full section including the lesson content."""

    content: str | None = None


# -----------------------------------------------------------------------------
# Admin editor payloads
# -----------------------------------------------------------------------------

class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    slug: str | None = Field(default=None, max_length=200)
    order_index: int = Field(..., ge=0)


class ModuleUpdate(BaseModel):
    """All fields optional; only the ones sent are written."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    slug: str | None = Field(default=None, max_length=200)
    order_index: int | None = Field(default=None, ge=0)


class SectionCreate(BaseModel):
    module_id: str
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    order_index: int = Field(..., ge=0)


class SectionUpdate(BaseModel):
    module_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    order_index: int | None = Field(default=None, ge=0)


class Page(BaseModel):
    """
    One page of an admin listing.

    Example:
        {"items": [...], "total": 42, "page": 2, "page_size": 10, "total_pages": 5}
    """

    items: list[dict[str, Any]]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


# -----------------------------------------------------------------------------
# Member activity
# -----------------------------------------------------------------------------

class BookmarkRequest(BaseModel):
    """Where the member stopped reading inside a module."""

    module_id: str = Field(..., min_length=1)
    section_id: str = Field(..., min_length=1)


class ProgressUpdate(BaseModel):
    section_id: str = Field(..., min_length=1)
    completed: bool
