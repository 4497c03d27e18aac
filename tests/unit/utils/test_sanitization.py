"""Tests for secret sanitization and endpoint truncation."""

from __future__ import annotations

import re

import pytest

from onrender_pinger.utils.sanitization import (
    REDACTED,
    is_sensitive_field,
    register_sanitization_pattern,
    sanitize_args,
    sanitize_exception,
    sanitize_url,
    sanitize_value,
    truncate_identifier,
)


class TestTruncateIdentifier:
    """Test endpoint truncation."""

    def test_long_values_keep_first_fifty_characters(self) -> None:
        value = "https://example.com/" + "x" * 60

        assert truncate_identifier(value) == value[:50]
        assert len(truncate_identifier(value)) == 50

    def test_short_values_are_unchanged(self) -> None:
        assert truncate_identifier("https://a.test") == "https://a.test"

    def test_custom_limit(self) -> None:
        assert truncate_identifier("abcdef", limit=3) == "abc"

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValueError, match="limit must be positive"):
            _ = truncate_identifier("abc", limit=0)


class TestSanitizeUrl:
    """Test generic token redaction."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            (
                "https://api.example.com/data?token=secret123",
                f"https://api.example.com/data?token={REDACTED}",
            ),
            (
                "https://api.example.com/data?page=2&api_key=abc&x=1",
                f"https://api.example.com/data?page=2&api_key={REDACTED}&x=1",
            ),
            (
                "https://api.example.com/token/abc123/status",
                f"https://api.example.com/token/{REDACTED}/status",
            ),
        ],
    )
    def test_generic_tokens_are_redacted(self, url: str, expected: str) -> None:
        assert sanitize_url(url) == expected

    def test_plain_urls_are_unchanged(self) -> None:
        assert sanitize_url("https://my-app.onrender.com/health") == "https://my-app.onrender.com/health"

    def test_empty_string(self) -> None:
        assert sanitize_url("") == ""

    def test_registered_pattern_is_applied_once(self) -> None:
        pattern = re.compile(r"(https://hooks\.internal\.test/)([^/?#\s]+)")

        register_sanitization_pattern(pattern, rf"\1{REDACTED}")
        register_sanitization_pattern(pattern, rf"\1{REDACTED}")

        assert sanitize_url("https://hooks.internal.test/abc") == f"https://hooks.internal.test/{REDACTED}"


class TestSanitizeValue:
    """Test recursive sanitization."""

    def test_sensitive_field_names_are_redacted(self) -> None:
        assert sanitize_value({"api_token": "secret", "count": 42}) == {"api_token": REDACTED, "count": 42}

    def test_nested_structures(self) -> None:
        data = {"outer": [{"password": "x"}, "https://a.test/data?token=t"], "tuple": ("ok",)}

        assert sanitize_value(data) == {
            "outer": [{"password": REDACTED}, f"https://a.test/data?token={REDACTED}"],
            "tuple": ("ok",),
        }

    def test_non_string_primitives_pass_through(self) -> None:
        assert sanitize_value(3.5) == 3.5
        assert sanitize_value(None) is None
        assert sanitize_value(True) is True

    @pytest.mark.parametrize("name", ["webhook_secret", "AUTH_HEADER", "bearer", "db_password"])
    def test_is_sensitive_field(self, name: str) -> None:
        assert is_sensitive_field(name)

    def test_ordinary_field_names_are_not_sensitive(self) -> None:
        assert not is_sensitive_field("url_count")


class TestSanitizeException:
    """Test exception message sanitization."""

    def test_message_is_prefixed_with_type_and_sanitized(self) -> None:
        assert sanitize_exception(ValueError("bad /token/abc123")) == f"ValueError: bad /token/{REDACTED}"

    def test_empty_message_yields_type_name(self) -> None:
        assert sanitize_exception(TimeoutError()) == "TimeoutError"


def test_sanitize_args_keeps_tuple_shape() -> None:
    assert sanitize_args(("https://a.test?token=abc", 5)) == (f"https://a.test?token={REDACTED}", 5)
