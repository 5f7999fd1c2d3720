# =============================================================================
# core/models/account.py - Member Account Schemas
# =============================================================================
# Profile, email preferences, password change, contact form.
# Request bodies keep the camelCase keys the web client sends; fields are
# snake_case in Python and mapped with aliases.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class EmailPreferences(BaseModel):
    """
    Which email categories a member opted into.

    Stored as JSON in profiles.email_preferences and mirrored to Brevo lists.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content_updates: bool = Field(default=False, alias="contentUpdates")
    account_changes: bool = Field(default=False, alias="accountChanges")
    marketing: bool = Field(default=False)

    def as_stored(self) -> dict[str, bool]:
        return self.model_dump(by_alias=True)


class Profile(BaseModel):
    id: str
    full_name: str | None = None
    nickname: str | None = None
    avatar_color: str | None = None
    avatar_url: str | None = None
    email_preferences: dict | None = None


class ProfileUpdate(BaseModel):
    """
    Editable profile fields.

    Blank strings are rejected with 400 by the service rather than 422,
    matching how the account form reports "required" errors.
    """

    full_name: str = ""
    nickname: str = ""
    avatar_color: str = ""


class PreferencesUpdate(BaseModel):
    preferences: EmailPreferences


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(default="", alias="currentPassword")
    new_password: str = Field(default="", alias="newPassword")


class BrevoSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    user_id: str = Field(..., alias="userId")
    preferences: EmailPreferences | None = None


class ContactRequest(BaseModel):
    """Public contact form submission."""

    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""
