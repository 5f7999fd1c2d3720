# =============================================================================
# tests/test_account.py - Profile, Password and Preferences Tests
# =============================================================================

from unittest.mock import patch

import pytest

from app.exceptions import ForbiddenError, ProfileNotFoundError, ValidationError
from core.models.account import EmailPreferences, ProfileUpdate
from core.services.profile_service import ProfileService
from lib.brevo import BrevoError
from tests.conftest import MEMBER_ID

SUPABASE = "core.services.profile_service.SupabaseClient"
BREVO = "core.services.profile_service.BrevoClient"


@pytest.fixture
def profile_row():
    return {
        "id": MEMBER_ID,
        "full_name": "Ada Lovelace",
        "nickname": "ada",
        "avatar_color": "#336699",
        "avatar_url": None,
        "email_preferences": {"contentUpdates": True, "accountChanges": True, "marketing": False},
    }


@pytest.fixture
def brevo_on():
    with patch("core.services.profile_service.settings") as mock_settings:
        mock_settings.brevo_configured = True
        yield mock_settings


# =============================================================================
# ProfileService
# =============================================================================

class TestProfileService:

    def test_get_profile_missing(self):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_profile.return_value = None

            with pytest.raises(ProfileNotFoundError):
                ProfileService.get_profile(MEMBER_ID)

    def test_update_profile_requires_all_fields(self):
        with patch(SUPABASE) as mock_db:
            with pytest.raises(ValidationError) as exc_info:
                ProfileService.update_profile(MEMBER_ID, ProfileUpdate(full_name="Ada", nickname=" "))

            mock_db.update_profile.assert_not_called()
        assert exc_info.value.details == {"missing": ["nickname", "avatar_color"]}

    def test_update_profile_strips_values(self, profile_row):
        with patch(SUPABASE) as mock_db:
            mock_db.update_profile.return_value = profile_row

            ProfileService.update_profile(
                MEMBER_ID,
                ProfileUpdate(full_name=" Ada Lovelace ", nickname="ada", avatar_color="#336699"),
            )

        values = mock_db.update_profile.call_args[0][1]
        assert values["full_name"] == "Ada Lovelace"
        assert "updated_at" in values

    def test_subscription_summary(self, sample_subscription):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_latest_subscription.return_value = sample_subscription

            summary = ProfileService.get_subscription_summary(MEMBER_ID)

        assert summary.plan_name == "Monthly"
        assert summary.current_period_end == 1706745600
        assert summary.cancel_at_period_end is False

    def test_subscription_summary_free_member(self):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_latest_subscription.return_value = None
            assert ProfileService.get_subscription_summary(MEMBER_ID) is None


class TestPasswordChange:

    def test_short_password(self, member):
        with pytest.raises(ValidationError) as exc_info:
            ProfileService.change_password(member, "old-password", "short")
        assert "at least 8" in exc_info.value.message

    def test_missing_current_password(self, member):
        with pytest.raises(ValidationError):
            ProfileService.change_password(member, "", "long-enough-password")

    def test_wrong_current_password(self, member):
        with patch(SUPABASE) as mock_db:
            mock_db.verify_password.return_value = False

            with pytest.raises(ValidationError) as exc_info:
                ProfileService.change_password(member, "wrong", "long-enough-password")

            mock_db.set_password.assert_not_called()
        assert exc_info.value.message == "Current password is incorrect"

    def test_success(self, member):
        with patch(SUPABASE) as mock_db:
            mock_db.verify_password.return_value = True

            ProfileService.change_password(member, "old-password", "long-enough-password")

        mock_db.verify_password.assert_called_once_with("member@example.com", "old-password")
        mock_db.set_password.assert_called_once_with(member.id, "long-enough-password")


class TestPreferences:

    def test_update_preferences_syncs_brevo(self, member, profile_row, brevo_on):
        prefs = EmailPreferences(content_updates=True, marketing=True)
        with patch(SUPABASE) as mock_db, patch(BREVO) as mock_brevo:
            mock_db.update_profile.return_value = profile_row

            stored = ProfileService.update_preferences(member, prefs)

        assert stored == {"contentUpdates": True, "accountChanges": False, "marketing": True}
        mock_brevo.return_value.sync_contact.assert_called_once_with(
            "member@example.com", stored, full_name="Ada Lovelace", nickname="ada"
        )

    def test_brevo_failure_does_not_fail_update(self, member, profile_row, brevo_on):
        with patch(SUPABASE) as mock_db, patch(BREVO) as mock_brevo:
            mock_db.update_profile.return_value = profile_row
            mock_brevo.return_value.sync_contact.side_effect = BrevoError("Brevo returned 500")

            stored = ProfileService.update_preferences(member, EmailPreferences(marketing=True))

        assert stored["marketing"] is True

    def test_sync_skipped_without_brevo(self):
        with patch("core.services.profile_service.settings") as mock_settings, patch(BREVO) as mock_brevo:
            mock_settings.brevo_configured = False

            assert ProfileService.sync_brevo_contact("a@example.com", {}) is False
            mock_brevo.assert_not_called()

    def test_sync_for_other_user_forbidden(self, member):
        with pytest.raises(ForbiddenError):
            ProfileService.sync_brevo_for_user(member, "x@example.com", "someone-else")

    def test_sync_for_user_uses_stored_preferences(self, member, profile_row, brevo_on):
        with patch(SUPABASE) as mock_db, patch(BREVO) as mock_brevo:
            mock_db.fetch_profile.return_value = profile_row

            assert ProfileService.sync_brevo_for_user(member, "member@example.com", MEMBER_ID) is True

        args = mock_brevo.return_value.sync_contact.call_args
        assert args[0][1] == profile_row["email_preferences"]


# =============================================================================
# Routes
# =============================================================================

class TestUserRoutes:

    def test_get_profile(self, member_client, profile_row):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_profile.return_value = profile_row

            response = member_client.get("/api/user/profile")

        assert response.status_code == 200
        assert response.json()["nickname"] == "ada"

    def test_get_profile_missing(self, member_client):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_profile.return_value = None

            response = member_client.get("/api/user/profile")

        assert response.status_code == 404
        assert response.json()["code"] == "PROFILE_NOT_FOUND"

    def test_update_profile_blank(self, member_client):
        response = member_client.put("/api/user/profile", json={"full_name": "Ada"})
        assert response.status_code == 400

    def test_subscription_null_for_free_member(self, member_client):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_latest_subscription.return_value = None

            response = member_client.get("/api/user/subscription")

        assert response.status_code == 200
        assert response.json() is None

    def test_change_password(self, member_client):
        with patch(SUPABASE) as mock_db:
            mock_db.verify_password.return_value = True

            response = member_client.put(
                "/api/user/password",
                json={"currentPassword": "old-password", "newPassword": "new-password-123"},
            )

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_change_password_wrong_current(self, member_client):
        with patch(SUPABASE) as mock_db:
            mock_db.verify_password.return_value = False

            response = member_client.put(
                "/api/user/password",
                json={"currentPassword": "nope", "newPassword": "new-password-123"},
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Current password is incorrect"

    def test_update_preferences(self, member_client, profile_row):
        with patch(SUPABASE) as mock_db, patch.object(ProfileService, "sync_brevo_contact", return_value=True):
            mock_db.update_profile.return_value = profile_row

            response = member_client.put(
                "/api/user/preferences",
                json={"preferences": {"contentUpdates": False, "accountChanges": True, "marketing": True}},
            )

        assert response.status_code == 200
        assert response.json()["preferences"] == {
            "contentUpdates": False,
            "accountChanges": True,
            "marketing": True,
        }

    def test_sync_brevo_other_user(self, member_client):
        response = member_client.post(
            "/api/user/sync-brevo",
            json={"email": "x@example.com", "userId": "someone-else"},
        )
        assert response.status_code == 403
