"""Shared utility modules for common operations.

This package provides:
- Time and interval formatting for logs, status output and webhook bodies
- Secret sanitization and endpoint truncation for safe logging

The async HTTP client (``utils.http_client``) and the logging setup
(``utils.logging``) are imported from their modules directly.
"""

from onrender_pinger.utils.formatting import (
    describe_interval,
    format_duration,
    format_timestamp,
    utc_timestamp,
)
from onrender_pinger.utils.sanitization import (
    REDACTED,
    register_sanitization_pattern,
    sanitize_exception,
    sanitize_url,
    sanitize_value,
    truncate_identifier,
)

__all__ = [
    # Formatting utilities
    "describe_interval",
    "format_duration",
    "format_timestamp",
    "utc_timestamp",
    # Sanitization
    "REDACTED",
    "register_sanitization_pattern",
    "sanitize_exception",
    "sanitize_url",
    "sanitize_value",
    "truncate_identifier",
]
