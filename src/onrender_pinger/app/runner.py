"""Application runner for OnRender Pinger.

Wires configuration, the shared HTTP client, the probing engine, the
scheduler and the HTTP surface together, and owns the process lifecycle:
startup banner, signal handling and graceful shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from aiohttp import web

from onrender_pinger.app.server import create_app
from onrender_pinger.core.config import ConfigSource, ConfigurationError, PingerConfig, make_config_source
from onrender_pinger.core.cycle import CycleRunner
from onrender_pinger.core.policy import NotificationPolicy
from onrender_pinger.core.probe import ProbeExecutor
from onrender_pinger.core.scheduler import ManualTriggerGuard, Scheduler
from onrender_pinger.core.targets import resolve_targets
from onrender_pinger.notifications.dispatcher import WebhookDispatcher
from onrender_pinger.types.protocols import HTTPClient
from onrender_pinger.utils.formatting import describe_interval
from onrender_pinger.utils.http_client import AIOHTTPClient
from onrender_pinger.utils.logging import configure_logging

EXIT_SUCCESS: Final[int] = 0
EXIT_CONFIG_ERROR: Final[int] = 1

_SHUTDOWN_SIGNALS: Final[tuple[signal.Signals, ...]] = (signal.SIGINT, signal.SIGTERM)


def build_scheduler(
    config: PingerConfig,
    config_source: ConfigSource,
    http_client: HTTPClient,
) -> Scheduler:
    """Assemble the probing engine around a shared HTTP client.

    Target and webhook lists, and the success flag, are read through
    ``config_source`` on every use; timing values come from ``config``.
    """
    executor = ProbeExecutor(http_client, timeout=config.probe_timeout_seconds)
    cycle_runner = CycleRunner(
        lambda: config_source().ping_urls,
        executor,
        max_concurrency=config.max_concurrency,
    )
    policy = NotificationPolicy(lambda: config_source().notify_success)
    dispatcher = WebhookDispatcher(
        http_client,
        lambda: config_source().webhook_urls,
        dry_run_enabled=config.dry_run,
    )
    return Scheduler(
        cycle_runner,
        policy,
        dispatcher,
        interval_seconds=config.ping_interval_seconds,
        startup_delay_seconds=config.startup_delay_seconds,
        manual_guard=ManualTriggerGuard(config.manual_min_interval_seconds),
    )


class ApplicationRunner:
    """Main application runner that coordinates all components."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        dry_run: bool = False,
        log_level: str | None = None,
        port: int | None = None,
        interval_seconds: int | None = None,
        run_once: bool = False,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the application runner.

        Args:
            config_path: Optional YAML configuration file
            dry_run: Log webhook payloads instead of sending them
            log_level: Override the configured log level
            port: Override the configured listen port
            interval_seconds: Override the configured cycle interval
            run_once: Run a single cycle without the HTTP surface, then exit
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self.config_path: Path | None = config_path
        self.dry_run: bool = dry_run
        self.log_level: str | None = log_level
        self.port: int | None = port
        self.interval_seconds: int | None = interval_seconds
        self.run_once: bool = run_once
        self._environ: Mapping[str, str] | None = environ
        self._logger: logging.Logger = logging.getLogger(__name__)

    def overrides(self) -> dict[str, object]:
        """CLI values that take precedence over file and environment."""
        return {
            "log_level": self.log_level,
            "port": self.port,
            "ping_interval_seconds": self.interval_seconds,
            "dry_run": True if self.dry_run else None,
        }

    def run(self) -> int:
        """Run the application to completion and return the exit code.

        Raises:
            ConfigurationError: If configuration is invalid or no valid URL is configured
        """
        asyncio.run(self.run_async())
        return EXIT_SUCCESS

    async def run_async(self) -> None:
        config_source = make_config_source(
            self.config_path,
            environ=self._environ,
            overrides=self.overrides(),
        )
        config = config_source()

        configure_logging(log_level=config.log_level)

        urls = resolve_targets(config.ping_urls)
        if not urls:
            msg = (
                "No valid URLs found in PING_URLS.\n"
                "Set PING_URLS to a comma-separated list of http(s) URLs, "
                "e.g. PING_URLS=https://app1.onrender.com,https://app2.onrender.com"
            )
            raise ConfigurationError(msg)

        if config.dry_run:
            self._logger.info("Dry-run mode enabled: webhook payloads will be logged, not sent")

        async with AIOHTTPClient() as http_client:
            scheduler = build_scheduler(config, config_source, http_client)

            if self.run_once:
                report = await scheduler.run_full_cycle()
                self._logger.info(
                    "Single cycle finished: %d/%d successful",
                    report.success_count,
                    report.total,
                )
                return

            await self._serve(config, config_source, scheduler, url_count=len(urls))

    async def _serve(
        self,
        config: PingerConfig,
        config_source: ConfigSource,
        scheduler: Scheduler,
        *,
        url_count: int,
    ) -> None:
        app = create_app(scheduler, config_source, started_at_monotonic=time.monotonic())
        app_runner = web.AppRunner(app)
        await app_runner.setup()

        loop = asyncio.get_running_loop()
        shutdown_event = asyncio.Event()

        def request_shutdown(sig: signal.Signals) -> None:
            if not shutdown_event.is_set():
                self._logger.info("Received %s, shutting down gracefully", sig.name)
                shutdown_event.set()

        try:
            site = web.TCPSite(app_runner, config.host, config.port)
            await site.start()

            self._logger.info("OnRender Pinger server running on port %d", config.port)
            self._logger.info("Health check: http://localhost:%d", config.port)
            self._logger.info("Manual ping: http://localhost:%d/ping-now", config.port)
            self._logger.info(
                "Monitoring %d URL(s), %s",
                url_count,
                describe_interval(config.ping_interval_seconds).lower(),
            )

            for sig in _SHUTDOWN_SIGNALS:
                loop.add_signal_handler(sig, request_shutdown, sig)

            await scheduler.start()
            _ = await shutdown_event.wait()
        finally:
            for sig in _SHUTDOWN_SIGNALS:
                _ = loop.remove_signal_handler(sig)
            await scheduler.stop()
            await app_runner.cleanup()
            self._logger.info("OnRender Pinger shutdown complete")
