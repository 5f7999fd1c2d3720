# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single service-role client
# and provides specialized methods per table:
# - modules / sections (course catalogue)
# - user_progress / user_bookmarks
# - profiles, plans, subscriptions
# - config (site flags) and RPC helpers
# - auth admin helpers
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   modules = SupabaseClient.list_modules()
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code for "no rows returned" from .single()
NO_ROWS = "PGRST116"

# PostgREST code for a .range() offset past the last row
RANGE_NOT_SATISFIABLE = "PGRST103"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and a suggestion so callers can surface something
    actionable instead of a raw PostgREST message.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        module = SupabaseClient.fetch_module("550e8400-...")
        if module is None:
            raise CourseModuleNotFoundError(...)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def create_anon_client(cls) -> Client:
        """
        Create a short-lived client with the anon key.

        Used for password sign-in checks so the shared service client
        never carries a user session.
        """
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @classmethod
    def _execute(cls, query: Any, action: str, allow_missing: bool = False, **details: Any) -> Any:
        """
        Run a built query and return its response.

        With allow_missing, a PGRST116 error (no rows for .single()) yields
        None instead of raising.

        Raises:
            SupabaseClientError: On any other failure
        """
        try:
            return query.execute()
        except Exception as e:
            if allow_missing and NO_ROWS in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to {action}: {e}",
                code=action.upper().replace(" ", "_") + "_FAILED",
                details=details,
            )

    @staticmethod
    def _data(response: Any) -> Any:
        # maybe_single() returns None instead of an empty response
        return response.data if response is not None else None

    # -------------------------------------------------------------------------
    # Modules & Sections
    # -------------------------------------------------------------------------

    @classmethod
    def list_modules(cls) -> list[dict[str, Any]]:
        """Fetch every module ordered by order_index."""
        query = cls.get_client().table("modules").select("*").order("order_index")
        return cls._data(cls._execute(query, "fetch modules")) or []

    @classmethod
    def fetch_module(cls, module_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a module by ID, or None if it doesn't exist."""
        module_id_str = cls._normalize_uuid(module_id)
        query = (
            cls.get_client().table("modules")
            .select("*")
            .eq("id", module_id_str)
            .single()
        )
        response = cls._execute(query, "fetch module", allow_missing=True, module_id=module_id_str)
        return cls._data(response)

    @classmethod
    def list_sections(
        cls,
        module_id: str | UUID | None = None,
        include_content: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Fetch sections ordered by order_index.

        Listings skip the content body unless include_content is set;
        section bodies can be large and are only needed on the detail view.
        """
        columns = "*" if include_content else "id, module_id, title, order_index, created_at, updated_at"
        query = cls.get_client().table("sections").select(columns)
        if module_id:
            query = query.eq("module_id", cls._normalize_uuid(module_id))
        query = query.order("order_index")
        return cls._data(cls._execute(query, "fetch sections")) or []

    @classmethod
    def fetch_section(cls, section_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a full section (with content), or None."""
        section_id_str = cls._normalize_uuid(section_id)
        query = (
            cls.get_client().table("sections")
            .select("*")
            .eq("id", section_id_str)
            .single()
        )
        response = cls._execute(query, "fetch section", allow_missing=True, section_id=section_id_str)
        return cls._data(response)

    @classmethod
    def fetch_sections_by_ids(cls, section_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch id/title/module_id for a set of sections."""
        if not section_ids:
            return []
        query = (
            cls.get_client().table("sections")
            .select("id, title, module_id")
            .in_("id", section_ids)
        )
        return cls._data(cls._execute(query, "fetch sections")) or []

    @classmethod
    def paginate(
        cls,
        table: str,
        page: int,
        page_size: int,
        columns: str = "*",
        search: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Fetch one page of a table ordered by order_index.

        Args:
            table: Table name
            page: 1-based page number
            page_size: Rows per page
            columns: Column list for select()
            search: Case-insensitive substring match on title
            filters: Equality filters {column: value}

        Returns:
            Tuple of (rows, total matching rows). A page past the end
            yields no rows with the real total.
        """
        def matching(select_columns: str) -> Any:
            query = cls.get_client().table(table).select(select_columns, count="exact")
            if search:
                query = query.ilike("title", f"%{search}%")
            for column, value in (filters or {}).items():
                query = query.eq(column, cls._normalize_uuid(value))
            return query

        offset = (page - 1) * page_size
        query = matching(columns).order("order_index").range(offset, offset + page_size - 1)

        try:
            response = cls._execute(query, f"list {table}", table=table, page=page)
        except SupabaseClientError as e:
            if RANGE_NOT_SATISFIABLE not in str(e):
                raise
            # PostgREST answers 416 without a count; fetch it separately
            response = cls._execute(matching("id").limit(1), f"count {table}", table=table)
            return [], response.count or 0

        return response.data or [], response.count or 0

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it."""
        query = cls.get_client().table(table).insert(data)
        response = cls._execute(query, f"insert into {table}", table=table)
        if not response.data:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_FAILED",
                details={"table": table},
            )
        return response.data[0]

    @classmethod
    def update_row(
        cls,
        table: str,
        row_id: str | UUID,
        data: dict[str, Any],
        column: str = "id",
    ) -> dict[str, Any] | None:
        """Update rows matching column == row_id; returns the first or None."""
        row_id_str = cls._normalize_uuid(row_id)
        query = cls.get_client().table(table).update(data).eq(column, row_id_str)
        response = cls._execute(query, f"update {table}", table=table, id=row_id_str)
        return response.data[0] if response.data else None

    @classmethod
    def delete_row(cls, table: str, row_id: str | UUID) -> bool:
        """Delete a row by id; True if something was deleted."""
        row_id_str = cls._normalize_uuid(row_id)
        query = cls.get_client().table(table).delete().eq("id", row_id_str)
        response = cls._execute(query, f"delete from {table}", table=table, id=row_id_str)
        return bool(response.data)

    @classmethod
    def count_rows(cls, table: str, **filters: Any) -> int:
        """Exact row count for a table with optional equality filters."""
        query = cls.get_client().table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = cls._execute(query, f"count {table}", table=table)
        return response.count or 0

    # -------------------------------------------------------------------------
    # Bookmarks & Progress
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_bookmark(cls, user_id: str | UUID, module_id: str | UUID) -> dict[str, Any] | None:
        query = (
            cls.get_client().table("user_bookmarks")
            .select("*")
            .eq("user_id", cls._normalize_uuid(user_id))
            .eq("module_id", cls._normalize_uuid(module_id))
            .maybe_single()
        )
        return cls._data(cls._execute(query, "fetch bookmark", allow_missing=True))

    @classmethod
    def upsert_bookmark(cls, data: dict[str, Any]) -> dict[str, Any] | None:
        query = cls.get_client().table("user_bookmarks").upsert(data, on_conflict="user_id,module_id")
        response = cls._execute(query, "save bookmark")
        return response.data[0] if response.data else None

    @classmethod
    def list_progress(cls, user_id: str | UUID) -> list[dict[str, Any]]:
        query = (
            cls.get_client().table("user_progress")
            .select("section_id, completed, updated_at")
            .eq("user_id", cls._normalize_uuid(user_id))
        )
        return cls._data(cls._execute(query, "fetch progress")) or []

    @classmethod
    def upsert_progress(cls, data: dict[str, Any]) -> dict[str, Any] | None:
        query = cls.get_client().table("user_progress").upsert(data, on_conflict="user_id,section_id")
        response = cls._execute(query, "save progress")
        return response.data[0] if response.data else None

    @classmethod
    def list_completed_progress(cls) -> list[dict[str, Any]]:
        """All completed progress rows (section_id only) for popularity stats."""
        query = (
            cls.get_client().table("user_progress")
            .select("section_id")
            .eq("completed", True)
        )
        return cls._data(cls._execute(query, "fetch completed progress")) or []

    @classmethod
    def list_created_since(cls, table: str, since_iso: str) -> list[dict[str, Any]]:
        """created_at values for rows created on or after since_iso."""
        query = (
            cls.get_client().table(table)
            .select("created_at")
            .gte("created_at", since_iso)
        )
        return cls._data(cls._execute(query, f"fetch {table} timeline", table=table)) or []

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    PROFILE_COLUMNS = "id, full_name, nickname, avatar_color, avatar_url, email_preferences"

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        user_id_str = cls._normalize_uuid(user_id)
        query = (
            cls.get_client().table("profiles")
            .select(cls.PROFILE_COLUMNS)
            .eq("id", user_id_str)
            .single()
        )
        response = cls._execute(query, "fetch profile", allow_missing=True, user_id=user_id_str)
        return cls._data(response)

    @classmethod
    def update_profile(cls, user_id: str | UUID, data: dict[str, Any]) -> dict[str, Any] | None:
        return cls.update_row("profiles", user_id, data)

    @classmethod
    def list_profiles(cls, columns: str = "*", created_since: str | None = None) -> list[dict[str, Any]]:
        query = cls.get_client().table("profiles").select(columns)
        if created_since:
            query = query.gte("created_at", created_since)
        return cls._data(cls._execute(query, "fetch profiles")) or []

    @classmethod
    def list_profiles_updated_since(cls, since_iso: str) -> list[dict[str, Any]]:
        query = (
            cls.get_client().table("profiles")
            .select("id")
            .gte("updated_at", since_iso)
        )
        return cls._data(cls._execute(query, "fetch active profiles")) or []

    # -------------------------------------------------------------------------
    # Plans & Subscriptions
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_plan(cls, plan_id: str | UUID) -> dict[str, Any] | None:
        plan_id_str = cls._normalize_uuid(plan_id)
        query = cls.get_client().table("plans").select("*").eq("id", plan_id_str).single()
        return cls._data(cls._execute(query, "fetch plan", allow_missing=True, plan_id=plan_id_str))

    @classmethod
    def fetch_active_plan_by_type(cls, plan_type: str) -> dict[str, Any] | None:
        query = (
            cls.get_client().table("plans")
            .select("*")
            .eq("plan_type", plan_type)
            .eq("active", True)
            .limit(1)
        )
        rows = cls._data(cls._execute(query, "fetch plan", plan_type=plan_type)) or []
        return rows[0] if rows else None

    @classmethod
    def fetch_latest_subscription(
        cls,
        user_id: str | UUID,
        statuses: tuple[str, ...] | None = None,
        with_plan: bool = False,
    ) -> dict[str, Any] | None:
        """
        Newest subscription row for a user.

        Args:
            user_id: Owner
            statuses: Restrict to these statuses (e.g. PREMIUM_STATUSES)
            with_plan: Embed the plan row under "plan"
        """
        user_id_str = cls._normalize_uuid(user_id)
        columns = "*, plan:plans(*)" if with_plan else "*"
        query = cls.get_client().table("subscriptions").select(columns).eq("user_id", user_id_str)
        if statuses:
            query = query.in_("status", list(statuses))
        query = query.order("created_at", desc=True).limit(1)
        rows = cls._data(cls._execute(query, "fetch subscription", user_id=user_id_str)) or []
        return rows[0] if rows else None

    @classmethod
    def fetch_subscription(cls, subscription_id: str) -> dict[str, Any] | None:
        query = (
            cls.get_client().table("subscriptions")
            .select("*")
            .eq("id", subscription_id)
            .maybe_single()
        )
        response = cls._execute(
            query, "fetch subscription", allow_missing=True, subscription_id=subscription_id
        )
        return cls._data(response)

    @classmethod
    def fetch_customer_id(cls, user_id: str | UUID) -> str | None:
        """Stripe customer ID stored on any of the user's subscription rows."""
        query = (
            cls.get_client().table("subscriptions")
            .select("stripe_customer_id")
            .eq("user_id", cls._normalize_uuid(user_id))
            .not_.is_("stripe_customer_id", "null")
            .limit(1)
        )
        rows = cls._data(cls._execute(query, "fetch customer id")) or []
        return rows[0]["stripe_customer_id"] if rows else None

    @classmethod
    def upsert_subscription(cls, data: dict[str, Any], on_conflict: str = "user_id") -> dict[str, Any] | None:
        query = cls.get_client().table("subscriptions").upsert(data, on_conflict=on_conflict)
        response = cls._execute(query, "save subscription", user_id=data.get("user_id"))
        return response.data[0] if response.data else None

    @classmethod
    def update_subscription(cls, subscription_id: str, data: dict[str, Any]) -> dict[str, Any] | None:
        return cls.update_row("subscriptions", subscription_id, data)

    @classmethod
    def list_subscriptions(cls, statuses: tuple[str, ...] | None = None) -> list[dict[str, Any]]:
        """id/user_id/status for every subscription, optionally by status."""
        query = cls.get_client().table("subscriptions").select("id, user_id, status")
        if statuses:
            query = query.in_("status", list(statuses))
        return cls._data(cls._execute(query, "fetch subscriptions")) or []

    # -------------------------------------------------------------------------
    # Site Config
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_config(cls, keys: list[str] | None = None) -> dict[str, str]:
        """Return config rows as {key: value}."""
        query = cls.get_client().table("config").select("key, value")
        if keys:
            query = query.in_("key", keys)
        rows = cls._data(cls._execute(query, "fetch config")) or []
        return {row["key"]: row["value"] for row in rows}

    @classmethod
    def upsert_config(cls, values: dict[str, str], updated_at: str) -> None:
        rows = [
            {"key": key, "value": value, "updated_at": updated_at}
            for key, value in values.items()
        ]
        query = cls.get_client().table("config").upsert(rows, on_conflict="key")
        cls._execute(query, "save config", keys=list(values))

    # -------------------------------------------------------------------------
    # RPC
    # -------------------------------------------------------------------------

    @classmethod
    def rpc(cls, function: str, params: dict[str, Any] | None = None) -> Any:
        """Call a Postgres function and return its data."""
        query = cls.get_client().rpc(function, params or {})
        return cls._data(cls._execute(query, f"call {function}", function=function))

    # -------------------------------------------------------------------------
    # Auth Admin
    # -------------------------------------------------------------------------

    @classmethod
    def get_auth_user(cls, user_id: str | UUID) -> Any | None:
        """Fetch an auth.users record (email, metadata) by ID."""
        user_id_str = cls._normalize_uuid(user_id)
        try:
            response = cls.get_client().auth.admin.get_user_by_id(user_id_str)
        except Exception as e:
            logger.warning(f"Auth lookup failed for {user_id_str}: {e}")
            return None
        return response.user if response else None

    @classmethod
    def list_auth_users(cls, per_page: int = 1000) -> list[Any]:
        """Page through every auth user."""
        client = cls.get_client()
        users: list[Any] = []
        page = 1
        while True:
            try:
                batch = client.auth.admin.list_users(page=page, per_page=per_page)
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to list auth users: {e}",
                    code="LIST_USERS_FAILED",
                    suggestion="Check that SUPABASE_SERVICE_KEY is a service_role key",
                )
            users.extend(batch)
            if len(batch) < per_page:
                return users
            page += 1

    @classmethod
    def set_password(cls, user_id: str | UUID, password: str) -> None:
        user_id_str = cls._normalize_uuid(user_id)
        try:
            cls.get_client().auth.admin.update_user_by_id(user_id_str, {"password": password})
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update password: {e}",
                code="UPDATE_PASSWORD_FAILED",
                details={"user_id": user_id_str},
            )

    @classmethod
    def verify_password(cls, email: str, password: str) -> bool:
        """True if the email/password pair signs in."""
        client = cls.create_anon_client()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info(f"Password verification failed for {email}: {e}")
            return False
        return bool(response and response.user)
