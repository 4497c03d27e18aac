"""Notification policy.

Maps a cycle report to the payloads that should be delivered:

- any failure yields one ``error`` payload listing the failed targets
- a fully healthy, non-empty cycle yields one ``success`` payload, but only
  when success notifications are enabled
- everything else (including an empty cycle) yields nothing

``build_test_payload`` produces the synthetic payload used to check webhook
configuration without probing anything.
"""

import logging
from collections.abc import Callable
from typing import Final

from onrender_pinger.types.models import (
    CycleReport,
    NotificationDetail,
    NotificationPayload,
    NotificationType,
    OutcomeKind,
)
from onrender_pinger.utils.sanitization import sanitize_exception

logger = logging.getLogger(__name__)

TEST_TARGET_URL: Final[str] = "https://test-example.com"
TEST_RESPONSE_TIME_MS: Final[int] = 150


class NotificationPolicy:
    """Decide which notification payloads a cycle report produces."""

    def __init__(self, notify_success: bool | Callable[[], bool] = False) -> None:
        """Initialize policy.

        Args:
            notify_success: Success-notification flag, or a zero-argument
                callable read on every decision so reloads take effect
        """
        self._notify_success: Callable[[], bool] = (
            notify_success if callable(notify_success) else (lambda: notify_success)
        )

    def decide(self, report: CycleReport) -> list[NotificationPayload]:
        if report.failed_count > 0:
            return [
                NotificationPayload(
                    type=NotificationType.ERROR,
                    message=f"🚨 {report.failed_count} app(s) are down!",
                    summary=f"{report.success_count}/{report.total} apps responding",
                    details=tuple(NotificationDetail.from_outcome(outcome) for outcome in report.failed),
                )
            ]

        if not report.is_empty and self._success_enabled():
            return [
                NotificationPayload(
                    type=NotificationType.SUCCESS,
                    message=f"✅ All {report.success_count} apps are healthy!",
                    summary="All apps responding normally",
                    details=tuple(NotificationDetail.from_outcome(outcome) for outcome in report.successful),
                )
            ]

        return []

    def _success_enabled(self) -> bool:
        try:
            return self._notify_success()
        except Exception as exc:
            logger.warning(
                "Could not read success-notification flag, treating as off: %s",
                sanitize_exception(exc),
            )
            return False


def build_test_payload() -> NotificationPayload:
    """Build the synthetic payload sent by the test-webhook trigger."""
    return NotificationPayload(
        type=NotificationType.TEST,
        message="🧪 Test notification from OnRender Pinger",
        summary="This is a test webhook notification",
        details=(
            NotificationDetail(
                url=TEST_TARGET_URL,
                status=OutcomeKind.SUCCESS.value,
                response_time_ms=TEST_RESPONSE_TIME_MS,
            ),
        ),
    )
