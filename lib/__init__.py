# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable integrations and helpers:
# - supabase_client.py: Typed Supabase wrapper for database/auth operations
# - gmail.py: Gmail API sender (OAuth refresh token flow)
# - brevo.py: Brevo contact/list sync
# - utils.py: Shared utilities (UUID/email checks, time conversions)
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.gmail import GmailSender, GmailError
from lib.brevo import BrevoClient, BrevoError
from lib.utils import normalize_uuid, is_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Email
    "GmailSender",
    "GmailError",
    "BrevoClient",
    "BrevoError",
    # Utils
    "normalize_uuid",
    "is_uuid",
]
