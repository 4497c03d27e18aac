"""Webhook payload rendering per endpoint format.

Endpoints are classified from their URL alone, at dispatch time:

- ``discord.com`` endpoints receive a single embed
- ``slack.com`` endpoints receive text plus one attachment
- everything else receives the full generic JSON payload

Importing this module also registers log-redaction patterns for Discord and
Slack webhook secrets.
"""

import re
from enum import StrEnum
from typing import Final

from onrender_pinger.types.models import NotificationDetail, NotificationPayload
from onrender_pinger.utils.formatting import format_timestamp
from onrender_pinger.utils.sanitization import REDACTED, register_sanitization_pattern

SERVICE_NAME: Final[str] = "OnRender Pinger"

_DISCORD_ERROR_TITLE: Final[str] = "🚨 App Down Alert"
_DISCORD_STATUS_TITLE: Final[str] = "✅ Apps Status Update"
_DISCORD_RED: Final[int] = 15158332
_DISCORD_GREEN: Final[int] = 3066993

_SLACK_DANGER: Final[str] = "danger"
_SLACK_GOOD: Final[str] = "good"

# Discord webhook tokens follow the numeric webhook ID in the path
_DISCORD_WEBHOOK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(https?://(?:discord(?:app)?\.com)/api/webhooks/\d+/)([^/?#\s]+)",
    re.IGNORECASE,
)

# Slack incoming webhooks end in /services/<team>/<bot>/<secret>
_SLACK_WEBHOOK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(https?://hooks\.slack\.com/services/[^/\s]+/[^/\s]+/)([^/?#\s]+)",
    re.IGNORECASE,
)

register_sanitization_pattern(_DISCORD_WEBHOOK_PATTERN, rf"\1{REDACTED}")
register_sanitization_pattern(_SLACK_WEBHOOK_PATTERN, rf"\1{REDACTED}")


class EndpointFormat(StrEnum):
    """Wire format expected by a webhook endpoint."""

    DISCORD = "discord"
    SLACK = "slack"
    GENERIC = "generic"


def classify_endpoint(url: str) -> EndpointFormat:
    """Pick the wire format for ``url`` by host substring.

    Examples:
        >>> classify_endpoint("https://discord.com/api/webhooks/1/abc")
        <EndpointFormat.DISCORD: 'discord'>
        >>> classify_endpoint("https://hooks.slack.com/services/T/B/x")
        <EndpointFormat.SLACK: 'slack'>
        >>> classify_endpoint("https://example.com/hook")
        <EndpointFormat.GENERIC: 'generic'>
    """
    if "discord.com" in url:
        return EndpointFormat.DISCORD
    if "slack.com" in url:
        return EndpointFormat.SLACK
    return EndpointFormat.GENERIC


def render_payload(payload: NotificationPayload, endpoint_format: EndpointFormat) -> dict[str, object]:
    """Render ``payload`` as the JSON body for ``endpoint_format``."""
    match endpoint_format:
        case EndpointFormat.DISCORD:
            return render_discord(payload)
        case EndpointFormat.SLACK:
            return render_slack(payload)
        case EndpointFormat.GENERIC:
            return render_generic(payload)


def _response_time_text(detail: NotificationDetail) -> str:
    return "n/a" if detail.response_time_ms is None else str(detail.response_time_ms)


def render_discord(payload: NotificationPayload) -> dict[str, object]:
    """Render a Discord embed body."""
    fields: list[dict[str, object]] = [
        {
            "name": detail.url,
            "value": f"Status: {detail.status}\n{detail.error or f'Response: {_response_time_text(detail)}ms'}",
            "inline": True,
        }
        for detail in payload.details
    ]
    embed: dict[str, object] = {
        "title": _DISCORD_ERROR_TITLE if payload.is_error else _DISCORD_STATUS_TITLE,
        "description": payload.message,
        "color": _DISCORD_RED if payload.is_error else _DISCORD_GREEN,
        "timestamp": format_timestamp(payload.timestamp),
        "fields": fields,
    }
    return {"embeds": [embed]}


def render_slack(payload: NotificationPayload) -> dict[str, object]:
    """Render a Slack message with one attachment."""
    fields: list[dict[str, object]] = [
        {
            "title": detail.url,
            "value": detail.error or f"✅ {_response_time_text(detail)}ms",
            "short": True,
        }
        for detail in payload.details
    ]
    attachment: dict[str, object] = {
        "color": _SLACK_DANGER if payload.is_error else _SLACK_GOOD,
        "fields": fields,
        "ts": int(payload.timestamp.timestamp()),
    }
    return {"text": payload.message, "attachments": [attachment]}


def render_generic(payload: NotificationPayload) -> dict[str, object]:
    """Render the full payload with service metadata."""
    return {
        "timestamp": format_timestamp(payload.timestamp),
        "service": SERVICE_NAME,
        **payload.to_dict(),
    }
