"""Pure formatting utilities for human-readable output.

This module provides stateless formatting functions for converting raw
timing values into strings for logs, status responses and webhook bodies.
All functions are pure with no side effects.
"""

from datetime import UTC, datetime

# Time unit constants
_MINUTE = 60
_HOUR = _MINUTE * 60  # 3,600
_DAY = _HOUR * 24  # 86,400


def format_duration(seconds: float) -> str:
    """Convert seconds to human-readable duration format.

    Automatically selects appropriate time units based on magnitude.
    Shows the two most significant units for values over 1 hour.

    Args:
        seconds: Duration in seconds (must be non-negative)

    Returns:
        Human-readable duration string with adaptive granularity.
        - Days: "Xd Yh" (shows days and remaining hours)
        - Hours: "Xh Ym" (shows hours and remaining minutes)
        - Minutes: "Xm Ys" (shows minutes and remaining seconds)
        - Seconds: "Xs" (shows seconds only)

    Examples:
        >>> format_duration(45)
        '45s'
        >>> format_duration(90)
        '1m 30s'
        >>> format_duration(3665)
        '1h 1m'
        >>> format_duration(90000)
        '1d 1h'
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    total_seconds = int(seconds)

    if total_seconds >= _DAY:
        days = total_seconds // _DAY
        hours = (total_seconds % _DAY) // _HOUR
        if hours > 0:
            return f"{days}d {hours}h"
        return f"{days}d"

    if total_seconds >= _HOUR:
        hours = total_seconds // _HOUR
        minutes = (total_seconds % _HOUR) // _MINUTE
        if minutes > 0:
            return f"{hours}h {minutes}m"
        return f"{hours}h"

    if total_seconds >= _MINUTE:
        minutes = total_seconds // _MINUTE
        remaining = total_seconds % _MINUTE
        if remaining > 0:
            return f"{minutes}m {remaining}s"
        return f"{minutes}m"

    return f"{total_seconds}s"


def describe_interval(seconds: float) -> str:
    """Describe a schedule interval the way the status endpoint reports it.

    Examples:
        >>> describe_interval(900)
        'Every 15 minutes'
        >>> describe_interval(60)
        'Every 1 minute'
        >>> describe_interval(3600)
        'Every 1 hour'
        >>> describe_interval(90)
        'Every 1m 30s'
    """
    if seconds <= 0:
        msg = "seconds must be positive"
        raise ValueError(msg)

    total_seconds = int(seconds)
    if total_seconds % _HOUR == 0:
        hours = total_seconds // _HOUR
        return f"Every {hours} hour{'s' if hours != 1 else ''}"
    if total_seconds % _MINUTE == 0:
        minutes = total_seconds // _MINUTE
        return f"Every {minutes} minute{'s' if minutes != 1 else ''}"
    if total_seconds < _MINUTE:
        return f"Every {total_seconds} second{'s' if total_seconds != 1 else ''}"
    return f"Every {format_duration(total_seconds)}"


def format_timestamp(timestamp: datetime) -> str:
    """Render a datetime as an ISO 8601 UTC string with millisecond precision.

    Naive datetimes are assumed to be UTC.

    Examples:
        >>> format_timestamp(datetime(2024, 1, 1, 12, 30, tzinfo=UTC))
        '2024-01-01T12:30:00.000Z'
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_timestamp() -> str:
    """Current time in the same format as :func:`format_timestamp`."""
    return format_timestamp(datetime.now(UTC))
