"""Tests for endpoint classification and payload rendering."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from onrender_pinger.core.policy import build_test_payload
from onrender_pinger.notifications.formatters import (
    EndpointFormat,
    classify_endpoint,
    render_discord,
    render_generic,
    render_payload,
    render_slack,
)
from onrender_pinger.types.models import NotificationDetail, NotificationPayload, NotificationType
from onrender_pinger.utils.sanitization import REDACTED, sanitize_url

_TS = datetime(2024, 1, 1, 12, 30, tzinfo=UTC)


def _error_payload() -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.ERROR,
        message="🚨 1 app(s) are down!",
        summary="1/2 apps responding",
        details=(
            NotificationDetail(url="https://b.test", status="error", error="Request timed out after 30s"),
        ),
        timestamp=_TS,
    )


def _success_payload() -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.SUCCESS,
        message="✅ All 1 apps are healthy!",
        summary="All apps responding normally",
        details=(NotificationDetail(url="https://a.test", status="success", status_code=200, response_time_ms=87),),
        timestamp=_TS,
    )


class TestClassifyEndpoint:
    """Test URL-based format selection."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://discord.com/api/webhooks/123/abc", EndpointFormat.DISCORD),
            ("https://hooks.slack.com/services/T1/B2/xyz", EndpointFormat.SLACK),
            ("https://example.com/webhook", EndpointFormat.GENERIC),
            ("https://ntfy.sh/my-topic", EndpointFormat.GENERIC),
        ],
    )
    def test_classification(self, url: str, expected: EndpointFormat) -> None:
        assert classify_endpoint(url) is expected


class TestDiscordRendering:
    """Test Discord embed bodies."""

    def test_error_embed(self) -> None:
        body = render_discord(_error_payload())

        embeds = body["embeds"]
        assert isinstance(embeds, list)
        embed = embeds[0]
        assert embed == {
            "title": "🚨 App Down Alert",
            "description": "🚨 1 app(s) are down!",
            "color": 15158332,
            "timestamp": "2024-01-01T12:30:00.000Z",
            "fields": [
                {
                    "name": "https://b.test",
                    "value": "Status: error\nRequest timed out after 30s",
                    "inline": True,
                }
            ],
        }

    def test_success_embed(self) -> None:
        embed = render_discord(_success_payload())["embeds"][0]  # pyright: ignore[reportIndexIssue]

        assert embed["title"] == "✅ Apps Status Update"
        assert embed["color"] == 3066993
        assert embed["fields"][0]["value"] == "Status: success\nResponse: 87ms"

    def test_test_payload_uses_status_title(self) -> None:
        embed = render_discord(build_test_payload())["embeds"][0]  # pyright: ignore[reportIndexIssue]

        assert embed["title"] == "✅ Apps Status Update"
        assert embed["fields"][0]["value"] == "Status: success\nResponse: 150ms"


class TestSlackRendering:
    """Test Slack attachment bodies."""

    def test_error_message(self) -> None:
        body = render_slack(_error_payload())

        assert body == {
            "text": "🚨 1 app(s) are down!",
            "attachments": [
                {
                    "color": "danger",
                    "fields": [
                        {"title": "https://b.test", "value": "Request timed out after 30s", "short": True},
                    ],
                    "ts": int(_TS.timestamp()),
                }
            ],
        }

    def test_success_message(self) -> None:
        attachment = render_slack(_success_payload())["attachments"][0]  # pyright: ignore[reportIndexIssue]

        assert attachment["color"] == "good"
        assert attachment["fields"][0]["value"] == "✅ 87ms"
        assert isinstance(attachment["ts"], int)


class TestGenericRendering:
    """Test the full generic body."""

    def test_generic_body_carries_full_payload(self) -> None:
        body = render_generic(_success_payload())

        assert body == {
            "timestamp": "2024-01-01T12:30:00.000Z",
            "service": "OnRender Pinger",
            "type": "success",
            "message": "✅ All 1 apps are healthy!",
            "details": [{"url": "https://a.test", "status": "success", "statusCode": 200, "responseTime": 87}],
            "summary": "All apps responding normally",
        }


class TestRenderPayload:
    """Test format dispatch."""

    def test_formats_are_structurally_distinct(self) -> None:
        payload = _error_payload()

        discord = render_payload(payload, EndpointFormat.DISCORD)
        slack = render_payload(payload, EndpointFormat.SLACK)
        generic = render_payload(payload, EndpointFormat.GENERIC)

        assert set(discord) == {"embeds"}
        assert set(slack) == {"text", "attachments"}
        assert set(generic) == {"timestamp", "service", "type", "message", "details", "summary"}


class TestWebhookSecretRedaction:
    """Importing the formatters registers platform redaction patterns."""

    def test_discord_token_is_redacted(self) -> None:
        url = "https://discord.com/api/webhooks/123456789/SuperSecretToken_abc"

        sanitized = sanitize_url(f"POST {url} failed")

        assert "SuperSecretToken_abc" not in sanitized
        assert f"https://discord.com/api/webhooks/123456789/{REDACTED}" in sanitized

    def test_slack_secret_is_redacted(self) -> None:
        sanitized = sanitize_url("https://hooks.slack.com/services/T000/B000/XXXXSECRET")

        assert sanitized == f"https://hooks.slack.com/services/T000/B000/{REDACTED}"
