# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from uuid import UUID
from typing import Optional

from app.config import settings


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        """The single admin account is identified by ADMIN_EMAIL."""
        if not self.email or not settings.ADMIN_EMAIL:
            return False
        return self.email.lower() == settings.ADMIN_EMAIL.lower()


class UserResponse(BaseModel):
    """
    Current user as returned by /api/auth/me.

    Combines token claims with the profile row when one exists.
    """
    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    avatar_color: Optional[str] = None
    avatar_url: Optional[str] = None
    is_admin: bool = False
