"""HTTP status and manual-trigger surface.

Routes:

- ``GET /``              service status (optionally also starts a guarded cycle)
- ``GET /ping-now``      run a guarded full cycle and wait for it
- ``GET /test-webhook``  send the synthetic test notification
- ``GET /urls``          configured targets and webhooks
- ``GET /status``        scheduler introspection

Configuration is read through the config source on every request, so the
responses always reflect what the next cycle will use.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Final

from aiohttp import web

from onrender_pinger.core.config import ConfigSource
from onrender_pinger.core.scheduler import ManualTriggerThrottledError, Scheduler
from onrender_pinger.core.targets import split_list
from onrender_pinger.utils.formatting import describe_interval, format_timestamp, utc_timestamp
from onrender_pinger.utils.logging import get_logger
from onrender_pinger.utils.sanitization import sanitize_exception, sanitize_url, truncate_identifier

SERVICE_BANNER: Final[str] = "OnRender Pinger is running!"


def _masked_webhooks(webhooks: list[str]) -> list[str]:
    return [f"{truncate_identifier(webhook)}..." for webhook in webhooks]


def _isoformat_or_none(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


class PingerRoutes:
    """Request handlers bound to one scheduler and config source."""

    def __init__(
        self,
        scheduler: Scheduler,
        config_source: ConfigSource,
        *,
        started_at_monotonic: float,
        clock: Callable[[], float] = time.monotonic,
        logger_obj: logging.Logger | None = None,
    ) -> None:
        self._scheduler: Scheduler = scheduler
        self._config_source: ConfigSource = config_source
        self._started_at: float = started_at_monotonic
        self._clock: Callable[[], float] = clock
        self._logger: logging.Logger = logger_obj or get_logger(__name__)

    def _uptime(self) -> float:
        return max(0.0, self._clock() - self._started_at)

    async def index(self, request: web.Request) -> web.Response:  # pyright: ignore[reportUnusedParameter]
        config = self._config_source()
        urls = split_list(config.ping_urls)
        webhooks = split_list(config.webhook_urls)

        body: dict[str, object] = {
            "message": SERVICE_BANNER,
            "status": "active",
            "monitoredUrls": len(urls),
            "urls": urls,
            "webhooks": len(webhooks),
            "webhookUrls": _masked_webhooks(webhooks),
            "nextPing": describe_interval(self._scheduler.interval_seconds),
            "nextRunAt": _isoformat_or_none(self._scheduler.next_run_at),
            "uptime": self._uptime(),
            "timestamp": utc_timestamp(),
        }
        if config.trigger_on_status:
            body["manualPingTriggered"] = self._scheduler.trigger_manual_in_background()
        return web.json_response(body)

    async def ping_now(self, request: web.Request) -> web.Response:  # pyright: ignore[reportUnusedParameter]
        try:
            report = await self._scheduler.trigger_manual()
        except ManualTriggerThrottledError as exc:
            retry_after = round(exc.retry_after_seconds, 1)
            return web.json_response(
                {"error": "Manual ping throttled", "retryAfterSeconds": retry_after},
                status=429,
                headers={"Retry-After": str(max(1, round(exc.retry_after_seconds)))},
            )
        except Exception as exc:
            self._logger.exception("Manual ping failed: %s", sanitize_exception(exc))
            return web.json_response(
                {"error": "Failed to complete manual ping", "message": sanitize_url(str(exc))},
                status=500,
            )

        return web.json_response(
            {
                "message": "Manual ping completed",
                "timestamp": utc_timestamp(),
                "summary": f"{report.success_count}/{report.total} successful",
            }
        )

    async def test_webhook(self, request: web.Request) -> web.Response:  # pyright: ignore[reportUnusedParameter]
        try:
            results = await self._scheduler.send_test_notification()
        except Exception as exc:
            self._logger.exception("Test webhook failed: %s", sanitize_exception(exc))
            return web.json_response(
                {"error": "Failed to send test webhook", "message": sanitize_url(str(exc))},
                status=500,
            )

        delivered = sum(1 for result in results if result.success)
        return web.json_response(
            {
                "message": "Test webhook notifications sent",
                "timestamp": utc_timestamp(),
                "delivered": delivered,
                "failed": len(results) - delivered,
            }
        )

    async def urls(self, request: web.Request) -> web.Response:  # pyright: ignore[reportUnusedParameter]
        config = self._config_source()
        urls = split_list(config.ping_urls)
        webhooks = split_list(config.webhook_urls)
        return web.json_response(
            {
                "urls": urls,
                "urlCount": len(urls),
                "webhooks": len(webhooks),
                "webhookUrls": _masked_webhooks(webhooks),
            }
        )

    async def status(self, request: web.Request) -> web.Response:  # pyright: ignore[reportUnusedParameter]
        config = self._config_source()
        return web.json_response(
            {
                "lastRunAt": _isoformat_or_none(self._scheduler.last_run_at),
                "nextRunAt": _isoformat_or_none(self._scheduler.next_run_at),
                "intervalSeconds": self._scheduler.interval_seconds,
                "notifySuccess": config.notify_success,
                "uptime": self._uptime(),
                "timestamp": utc_timestamp(),
            }
        )


def create_app(
    scheduler: Scheduler,
    config_source: ConfigSource,
    *,
    started_at_monotonic: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> web.Application:
    """Build the aiohttp application serving the status and trigger routes."""
    routes = PingerRoutes(
        scheduler,
        config_source,
        started_at_monotonic=clock() if started_at_monotonic is None else started_at_monotonic,
        clock=clock,
    )

    app = web.Application()
    _ = app.router.add_get("/", routes.index)
    _ = app.router.add_get("/ping-now", routes.ping_now)
    _ = app.router.add_get("/test-webhook", routes.test_webhook)
    _ = app.router.add_get("/urls", routes.urls)
    _ = app.router.add_get("/status", routes.status)
    return app
