"""Secret sanitization utilities for logging and error messages.

Webhook URLs embed their credentials in the path, so any place that logs or
echoes an endpoint goes through this module first. Two mechanisms exist:

- pattern-based redaction (``sanitize_url`` and friends) for free-form text
- truncation (``truncate_identifier``) for endpoint identifiers shown in
  logs and status responses

Platform-specific URL patterns are registered by the modules that know about
those platforms via ``register_sanitization_pattern``.

Examples:
    >>> sanitize_url("https://api.example.com/data?token=secret123")
    'https://api.example.com/data?token=<REDACTED>'

    >>> truncate_identifier("https://example.com/" + "x" * 60)
    'https://example.com/xxxxxxxxxxxxxxxxxxxxxxxxxxxxxx'
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Final, TypeIs

# Redaction marker for sanitized values
REDACTED: Final[str] = "<REDACTED>"

# Number of leading characters of an endpoint that may appear in logs
IDENTIFIER_LIMIT: Final[int] = 50

# Pattern for URLs with tokens in path segments
_GENERIC_TOKEN_IN_PATH = re.compile(
    r"(/(?:token|api[-_]?key|auth|secret|bearer)[=/])([^/?#]+)",
    re.IGNORECASE,
)

# Pattern for URLs with tokens in query parameters
_GENERIC_TOKEN_IN_QUERY = re.compile(
    r"([?&](?:token|api[-_]?key|auth|secret|bearer)=)([^&]+)",
    re.IGNORECASE,
)

# Platform patterns registered at import time by the notifications package
_REGISTERED_PATTERNS: list[tuple[re.Pattern[str], str]] = []

# Sensitive field name patterns (case-insensitive)
_SENSITIVE_FIELD_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in [
        r".*token.*",
        r".*secret.*",
        r".*password.*",
        r".*credential.*",
        r".*auth.*",
        r".*bearer.*",
    ]
]


def register_sanitization_pattern(pattern: re.Pattern[str], replacement: str) -> None:
    """Register an additional URL redaction pattern.

    Registering the same pattern twice is a no-op.

    Args:
        pattern: Compiled pattern matching the secret-bearing part of a URL
        replacement: Replacement template passed to ``pattern.sub``
    """
    entry = (pattern, replacement)
    if entry not in _REGISTERED_PATTERNS:
        _REGISTERED_PATTERNS.append(entry)


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data.

    Examples:
        >>> is_sensitive_field("api_token")
        True
        >>> is_sensitive_field("url_count")
        False
    """
    return any(pattern.match(field_name) for pattern in _SENSITIVE_FIELD_PATTERNS)


def truncate_identifier(value: str, limit: int = IDENTIFIER_LIMIT) -> str:
    """Return at most the first ``limit`` characters of an endpoint identifier.

    Webhook tokens live at the end of their URLs, so the truncated prefix is
    safe to log while still identifying the endpoint.
    """
    if limit <= 0:
        msg = "limit must be positive"
        raise ValueError(msg)
    return value[:limit]


def sanitize_url(url: str) -> str:
    """Sanitize sensitive tokens from URLs while preserving structure.

    Registered platform patterns are applied first, then the generic token
    patterns for path segments and query parameters.

    Args:
        url: The URL (or free text containing URLs) to sanitize

    Returns:
        Sanitized text with tokens replaced by the REDACTED marker
    """
    if not url:
        return url

    sanitized = url
    for pattern, replacement in _REGISTERED_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    sanitized = _GENERIC_TOKEN_IN_PATH.sub(rf"\1{REDACTED}", sanitized)
    sanitized = _GENERIC_TOKEN_IN_QUERY.sub(rf"\1{REDACTED}", sanitized)
    return sanitized


def _is_primitive(value: object) -> TypeIs[str | int | float | bool | None]:
    return isinstance(value, (str, int, float, bool, type(None)))


def _is_mapping(value: object) -> TypeIs[Mapping[str, object]]:
    return isinstance(value, Mapping)


def _is_sequence(value: object) -> TypeIs[Sequence[object]]:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def sanitize_value(
    value: object,
    *,
    field_name: str | None = None,
) -> object:
    """Recursively sanitize sensitive values from structured data.

    Walks nested dicts, lists and tuples and sanitizes:
    1. values whose field name looks sensitive (replaced entirely)
    2. URLs embedded in string values
    3. nested structures, recursively

    Examples:
        >>> sanitize_value({"api_token": "secret", "count": 42})
        {'api_token': '<REDACTED>', 'count': 42}
    """
    if field_name and is_sensitive_field(field_name):
        return REDACTED

    if _is_primitive(value):
        if type(value) is str:
            return sanitize_url(value)
        return value

    if _is_mapping(value):
        return {key: sanitize_value(val, field_name=str(key)) for key, val in value.items()}

    if _is_sequence(value):
        sanitized_items: list[object] = [sanitize_value(item) for item in value]
        if isinstance(value, tuple):
            return tuple(sanitized_items)
        return sanitized_items

    return sanitize_url(str(value))


def sanitize_exception(exc: BaseException) -> str:
    """Sanitize exception messages to remove sensitive information.

    Examples:
        >>> sanitize_exception(ValueError("bad /token/abc123"))
        'ValueError: bad /token/<REDACTED>'
    """
    exc_type = type(exc).__name__
    exc_message = str(exc)
    if not exc_message:
        return exc_type
    return f"{exc_type}: {sanitize_url(exc_message)}"


def sanitize_args(args: tuple[object, ...]) -> tuple[object, ...]:
    """Sanitize a tuple of logging arguments."""
    return tuple(sanitize_value(arg) for arg in args)
