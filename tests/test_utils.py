# =============================================================================
# tests/test_utils.py - Shared Utility Tests
# =============================================================================

from datetime import datetime, timezone
from uuid import UUID

import pytest

from lib.utils import (
    as_bool_string,
    from_unix,
    is_uuid,
    is_valid_email,
    normalize_uuid,
    to_unix,
    truncate,
)


class TestUuidHelpers:

    def test_normalize_uuid_object(self):
        value = UUID("550e8400-e29b-41d4-a716-446655440000")
        assert normalize_uuid(value) == "550e8400-e29b-41d4-a716-446655440000"

    def test_normalize_uuid_string_passthrough(self):
        assert normalize_uuid("abc") == "abc"

    @pytest.mark.parametrize("value,expected", [
        ("550e8400-e29b-41d4-a716-446655440000", True),
        ("550E8400-E29B-41D4-A716-446655440000", True),
        ("monthly", False),
        ("", False),
        (None, False),
    ])
    def test_is_uuid(self, value, expected):
        assert is_uuid(value) is expected


class TestEmailValidation:

    @pytest.mark.parametrize("value,expected", [
        ("user@example.com", True),
        ("first.last@sub.example.co", True),
        ("no-at-sign.example.com", False),
        ("user@nodot", False),
        ("has space@example.com", False),
        ("", False),
    ])
    def test_is_valid_email(self, value, expected):
        assert is_valid_email(value) is expected


class TestTimeHelpers:

    def test_from_unix(self):
        assert from_unix(0) == "1970-01-01T00:00:00+00:00"

    def test_from_unix_none(self):
        assert from_unix(None) is None

    def test_to_unix_accepts_z_suffix(self):
        assert to_unix("2024-01-01T00:00:00Z") == 1704067200

    def test_to_unix_naive_datetime_is_utc(self):
        assert to_unix(datetime(2024, 1, 1)) == 1704067200

    def test_to_unix_aware_datetime(self):
        assert to_unix(datetime(2024, 1, 1, tzinfo=timezone.utc)) == 1704067200

    def test_to_unix_none(self):
        assert to_unix(None) is None


class TestTruncate:

    def test_short_text_unchanged(self):
        assert truncate("Short title") == "Short title"

    def test_exactly_limit_unchanged(self):
        assert truncate("x" * 20) == "x" * 20

    def test_long_text_cut(self):
        assert truncate("Understanding Closures Deeply") == "Understanding Closur..."


class TestBoolString:

    @pytest.mark.parametrize("value,expected", [
        (True, "true"),
        (False, "false"),
        ("true", "true"),
        ("TRUE", "true"),
        ("yes", "false"),
        (None, "false"),
    ])
    def test_as_bool_string(self, value, expected):
        assert as_bool_string(value) == expected
