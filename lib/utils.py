# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import re
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        user_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        user_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def is_uuid(value: str | None) -> bool:
    """True when value looks like a canonical UUID string."""
    return bool(value) and bool(UUID_PATTERN.match(value))


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value))


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def from_unix(timestamp: int | float | None) -> str | None:
    """
    Convert a Unix timestamp (as Stripe sends them) to an ISO-8601 string.

    Returns None for missing values so optional columns stay NULL.
    """
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def to_unix(value: str | datetime | None) -> int | None:
    """Convert an ISO-8601 string or datetime to epoch seconds."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


# =============================================================================
# Misc
# =============================================================================

def truncate(text: str, length: int = 20, suffix: str = "...") -> str:
    """Shorten text to `length` characters, appending suffix when cut."""
    if len(text) <= length:
        return text
    return text[:length] + suffix


def as_bool_string(value: Any) -> str:
    """Render a flag the way config rows and Brevo attributes store it."""
    return "true" if value is True or str(value).lower() == "true" else "false"
