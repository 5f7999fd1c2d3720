# =============================================================================
# tests/test_content.py - Catalogue, Paywall and Progress Tests
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest

from app.exceptions import (
    CourseModuleNotFoundError,
    SectionNotFoundError,
    SubscriptionRequiredError,
    ValidationError,
)
from core.models.content import ModuleUpdate, SectionCreate
from core.services.access_service import AccessService
from core.services.content_service import ContentService
from core.services.progress_service import ProgressService
from lib.supabase_client import SupabaseClient
from tests.conftest import MEMBER_ID

SUPABASE = "core.services.content_service.SupabaseClient"
ACCESS_SUPABASE = "core.services.access_service.SupabaseClient"


# =============================================================================
# Access rules
# =============================================================================

class TestAccessService:

    def test_first_module_is_free(self):
        assert AccessService.can_access_module({"order_index": 1}, is_premium=False) is True

    def test_other_modules_need_premium(self):
        assert AccessService.can_access_module({"order_index": 2}, is_premium=False) is False
        assert AccessService.can_access_module({"order_index": 2}, is_premium=True) is True

    def test_anonymous_is_not_premium(self):
        assert AccessService.resolve_premium(None) is False

    def test_admin_is_premium_without_lookup(self, admin_user):
        with patch(ACCESS_SUPABASE) as mock_db:
            assert AccessService.resolve_premium(admin_user) is True
            mock_db.fetch_latest_subscription.assert_not_called()

    def test_member_with_active_subscription(self, member, sample_subscription):
        with patch(ACCESS_SUPABASE) as mock_db:
            mock_db.fetch_latest_subscription.return_value = sample_subscription

            assert AccessService.resolve_premium(member) is True
            mock_db.fetch_latest_subscription.assert_called_once_with(
                MEMBER_ID, statuses=("active", "trialing")
            )

    def test_member_without_subscription(self, member):
        with patch(ACCESS_SUPABASE) as mock_db:
            mock_db.fetch_latest_subscription.return_value = None
            assert AccessService.resolve_premium(member) is False


# =============================================================================
# ContentService
# =============================================================================

class TestContentService:

    def test_list_modules_marks_access(self, sample_modules):
        with patch(SUPABASE) as mock_db:
            mock_db.list_modules.return_value = sample_modules

            modules = ContentService.list_modules(None)

        assert [m["has_access"] for m in modules] == [True, False]

    def test_get_module_missing(self):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_module.return_value = None

            with pytest.raises(CourseModuleNotFoundError):
                ContentService.get_module("nope")

    def test_get_section_blocks_free_member(self, member, sample_modules, sample_section):
        with patch(SUPABASE) as mock_db, patch.object(AccessService, "has_premium", return_value=False):
            mock_db.fetch_section.return_value = sample_section
            mock_db.fetch_module.return_value = sample_modules[1]

            with pytest.raises(SubscriptionRequiredError) as exc_info:
                ContentService.get_section("sec-1", member)

        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "SUBSCRIPTION_REQUIRED"

    def test_get_section_free_module_for_anonymous(self, sample_modules, sample_section):
        sample_section["module_id"] = "mod-1"
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_section.return_value = sample_section
            mock_db.fetch_module.return_value = sample_modules[0]

            section = ContentService.get_section("sec-1", None)

        assert section["content"] == "<p>Premium lesson</p>"

    def test_get_section_missing(self):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_section.return_value = None

            with pytest.raises(SectionNotFoundError):
                ContentService.get_section("nope", None)

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_search_requires_query(self, query):
        with pytest.raises(ValidationError) as exc_info:
            ContentService.search(query)
        assert exc_info.value.message == "Search query is required"

    def test_search_trims_term(self):
        with patch(SUPABASE) as mock_db:
            mock_db.rpc.return_value = [{"id": "sec-1"}]

            assert ContentService.search("  closures ") == [{"id": "sec-1"}]
            mock_db.rpc.assert_called_once_with("search_content", {"search_term": "closures"})

    def test_list_modules_page(self):
        with patch(SUPABASE) as mock_db:
            mock_db.paginate.return_value = ([{"id": "m1"}], 21)

            page = ContentService.list_modules_page(page=2, page_size=10)

        assert page == {"items": [{"id": "m1"}], "total": 21, "page": 2, "page_size": 10, "total_pages": 3}

    def test_empty_page_has_zero_pages(self):
        with patch(SUPABASE) as mock_db:
            mock_db.paginate.return_value = ([], 0)

            assert ContentService.list_sections_page()["total_pages"] == 0

    def test_page_past_the_end_is_empty(self):
        query = MagicMock()
        for method in ("select", "ilike", "eq", "order", "range", "limit"):
            getattr(query, method).return_value = query
        query.execute.side_effect = [
            Exception("{'code': 'PGRST103', 'message': 'Requested range not satisfiable'}"),
            MagicMock(data=[{"id": "m1"}], count=15),
        ]
        client = MagicMock()
        client.table.return_value = query

        with patch.object(SupabaseClient, "get_client", return_value=client):
            page = ContentService.list_modules_page(page=3, page_size=10)

        assert page == {"items": [], "total": 15, "page": 3, "page_size": 10, "total_pages": 2}
        query.range.assert_called_once_with(20, 29)

    def test_update_module_without_changes_returns_current(self, sample_modules):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_module.return_value = sample_modules[0]

            module = ContentService.update_module("mod-1", ModuleUpdate())

        assert module == sample_modules[0]
        mock_db.update_row.assert_not_called()

    def test_create_section_checks_module(self):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_module.return_value = None

            with pytest.raises(CourseModuleNotFoundError):
                ContentService.create_section(SectionCreate(module_id="gone", title="Lesson", order_index=1))
            mock_db.insert_row.assert_not_called()

    def test_delete_missing_section(self):
        with patch(SUPABASE) as mock_db:
            mock_db.delete_row.return_value = False

            with pytest.raises(SectionNotFoundError):
                ContentService.delete_section("nope")


# =============================================================================
# ProgressService
# =============================================================================

class TestProgressService:

    def test_bookmark_requires_module(self):
        with pytest.raises(ValidationError):
            ProgressService.get_bookmark(MEMBER_ID, None)

    def test_record_progress_stores_module(self, sample_section):
        with patch("core.services.progress_service.SupabaseClient") as mock_db:
            mock_db.fetch_section.return_value = sample_section
            mock_db.upsert_progress.return_value = {"section_id": "sec-1", "completed": True}

            ProgressService.record_progress(MEMBER_ID, "sec-1", True)

        row = mock_db.upsert_progress.call_args[0][0]
        assert row["module_id"] == "mod-2"
        assert row["completed"] is True
        assert row["user_id"] == MEMBER_ID

    def test_record_progress_unknown_section(self):
        with patch("core.services.progress_service.SupabaseClient") as mock_db:
            mock_db.fetch_section.return_value = None

            with pytest.raises(SectionNotFoundError):
                ProgressService.record_progress(MEMBER_ID, "nope", True)


# =============================================================================
# Routes
# =============================================================================

class TestContentRoutes:

    def test_list_modules_anonymous(self, client, sample_modules):
        with patch(SUPABASE) as mock_db:
            mock_db.list_modules.return_value = sample_modules

            response = client.get("/api/modules")

        assert response.status_code == 200
        assert [m["has_access"] for m in response.json()] == [True, False]

    def test_module_not_found(self, client):
        with patch(SUPABASE) as mock_db:
            mock_db.fetch_module.return_value = None

            response = client.get("/api/modules/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "MODULE_NOT_FOUND"

    def test_premium_section_for_free_member(self, member_client, sample_modules, sample_section):
        with patch(SUPABASE) as mock_db, patch.object(AccessService, "has_premium", return_value=False):
            mock_db.fetch_section.return_value = sample_section
            mock_db.fetch_module.return_value = sample_modules[1]

            response = member_client.get("/api/sections/sec-1")

        assert response.status_code == 403
        assert response.json()["code"] == "SUBSCRIPTION_REQUIRED"

    def test_premium_section_for_subscriber(self, member_client, sample_modules, sample_section):
        with patch(SUPABASE) as mock_db, patch.object(AccessService, "has_premium", return_value=True):
            mock_db.fetch_section.return_value = sample_section
            mock_db.fetch_module.return_value = sample_modules[1]

            response = member_client.get("/api/sections/sec-1")

        assert response.status_code == 200
        assert response.json()["content"] == "<p>Premium lesson</p>"

    def test_search_empty_query(self, client):
        response = client.get("/api/search", params={"query": " "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Search query is required"

    def test_database_error_is_500(self, client):
        from lib.supabase_client import SupabaseClientError

        with patch(SUPABASE) as mock_db:
            mock_db.list_modules.side_effect = SupabaseClientError("boom", code="FETCH_MODULES_FAILED")

            response = client.get("/api/modules")

        assert response.status_code == 500
        assert response.json()["detail"] == "Database operation failed"


class TestProgressRoutes:

    def test_bookmark_requires_auth(self, client):
        assert client.get("/api/bookmarks", params={"module_id": "mod-1"}).status_code == 401

    def test_bookmark_missing_module_id(self, member_client):
        response = member_client.get("/api/bookmarks")
        assert response.status_code == 400

    def test_bookmark_none_yet(self, member_client):
        with patch("core.services.progress_service.SupabaseClient") as mock_db:
            mock_db.fetch_bookmark.return_value = None

            response = member_client.get("/api/bookmarks", params={"module_id": "mod-1"})

        assert response.status_code == 200
        assert response.json() is None

    def test_save_bookmark(self, member_client):
        with patch("core.services.progress_service.SupabaseClient") as mock_db:
            mock_db.upsert_bookmark.return_value = {"module_id": "mod-1", "section_id": "sec-3"}

            response = member_client.post("/api/bookmarks", json={"module_id": "mod-1", "section_id": "sec-3"})

        assert response.status_code == 200
        assert response.json()["section_id"] == "sec-3"

    def test_record_progress_route(self, member_client, sample_section):
        with patch("core.services.progress_service.SupabaseClient") as mock_db:
            mock_db.fetch_section.return_value = sample_section
            mock_db.upsert_progress.return_value = {"section_id": "sec-1", "completed": True}

            response = member_client.post("/api/user/progress", json={"section_id": "sec-1", "completed": True})

        assert response.status_code == 200
        assert response.json()["completed"] is True
