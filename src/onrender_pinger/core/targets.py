"""Target URL resolution.

Turns the raw comma-separated configuration strings into ordered lists.
Target URLs are validated and malformed entries dropped; webhook lists use
the same splitting discipline without validation.
"""

import logging
from typing import Final

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

LIST_DELIMITER: Final[str] = ","

_URL_ADAPTER: Final[TypeAdapter[AnyHttpUrl]] = TypeAdapter(AnyHttpUrl)


def split_list(raw: str | None) -> list[str]:
    """Split a delimited configuration string.

    Segments are trimmed and empty segments dropped; order is preserved.

    Examples:
        >>> split_list(" https://a.test , ,https://b.test,")
        ['https://a.test', 'https://b.test']
        >>> split_list(None)
        []
    """
    if not raw:
        return []
    return [segment.strip() for segment in raw.split(LIST_DELIMITER) if segment.strip()]


def is_valid_url(candidate: str) -> bool:
    """Check whether ``candidate`` is an absolute http(s) URL with a host."""
    try:
        _ = _URL_ADAPTER.validate_python(candidate)
    except ValidationError:
        return False
    return True


def resolve_targets(raw: str | None) -> list[str]:
    """Resolve the configured target URLs for one cycle.

    Invalid segments are logged and skipped. The surviving entries are
    returned exactly as configured, in configured order. Empty or entirely
    invalid input yields an empty list.

    Examples:
        >>> resolve_targets("https://a.test,not-a-url,https://b.test")
        ['https://a.test', 'https://b.test']
    """
    targets: list[str] = []
    for segment in split_list(raw):
        if is_valid_url(segment):
            targets.append(segment)
        else:
            logger.warning("Invalid URL skipped: %s", segment)
    return targets
