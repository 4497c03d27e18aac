"""Cycle scheduling and manual triggering.

The scheduler drives full cycles (probe, decide, dispatch) from three
places: a background timer, guarded manual triggers, and the test-webhook
trigger which skips probing entirely.

Scheduled cycles each run in their own task; a tick never waits for the
previous cycle, so slow cycles may overlap. A failing cycle is logged and
the timer keeps going.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Final
from uuid import uuid4

from onrender_pinger.core.cycle import CycleRunner
from onrender_pinger.core.policy import NotificationPolicy, build_test_payload
from onrender_pinger.types.models import CycleReport, DeliveryResult
from onrender_pinger.types.protocols import NotificationSink
from onrender_pinger.utils.logging import correlation_scope, get_logger
from onrender_pinger.utils.sanitization import sanitize_exception

DEFAULT_INTERVAL_SECONDS: Final[float] = 900.0
DEFAULT_STARTUP_DELAY_SECONDS: Final[float] = 5.0
DEFAULT_MANUAL_MIN_INTERVAL_SECONDS: Final[float] = 60.0


def next_tick_after(previous: float, now: float, interval: float) -> tuple[float, int]:
    """Return the first tick after ``previous`` that is later than ``now``.

    Ticks stay aligned to ``previous`` plus whole intervals. When the clock
    has jumped past one or more of them, those are dropped rather than fired
    back to back; the second element counts the dropped ticks.
    """
    upcoming = previous + interval
    if upcoming > now:
        return upcoming, 0
    skipped = math.floor((now - upcoming) / interval) + 1
    return upcoming + skipped * interval, skipped


class ManualTriggerThrottledError(Exception):
    """Raised when a manual trigger arrives inside the minimum interval."""

    def __init__(self, retry_after_seconds: float) -> None:
        self.retry_after_seconds: float = retry_after_seconds
        super().__init__(f"Manual ping throttled; retry after {retry_after_seconds:.1f}s")


class ManualTriggerGuard:
    """Minimum-interval throttle for manual triggers.

    Holds the monotonic time of the last accepted trigger. The check and the
    update are not serialized: two triggers arriving together may both pass.
    """

    def __init__(
        self,
        min_interval_seconds: float = DEFAULT_MANUAL_MIN_INTERVAL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval_seconds < 0:
            msg = "min_interval_seconds must be non-negative"
            raise ValueError(msg)
        self._min_interval_seconds: float = min_interval_seconds
        self._clock: Callable[[], float] = clock
        self._last_trigger: float | None = None

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval_seconds

    def retry_after_seconds(self) -> float:
        """Seconds until the next trigger would be accepted (0 when available)."""
        if self._last_trigger is None:
            return 0.0
        elapsed = self._clock() - self._last_trigger
        return max(0.0, self._min_interval_seconds - elapsed)

    def try_acquire(self) -> bool:
        """Accept the trigger and record its time, or reject it."""
        now = self._clock()
        if self._last_trigger is not None and now - self._last_trigger < self._min_interval_seconds:
            return False
        self._last_trigger = now
        return True


class Scheduler:
    """Run full cycles on a timer and on demand."""

    def __init__(
        self,
        cycle_runner: CycleRunner,
        policy: NotificationPolicy,
        dispatcher: NotificationSink,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        startup_delay_seconds: float = DEFAULT_STARTUP_DELAY_SECONDS,
        manual_guard: ManualTriggerGuard | None = None,
        logger_obj: logging.Logger | None = None,
    ) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be greater than zero"
            raise ValueError(msg)
        if startup_delay_seconds < 0:
            msg = "startup_delay_seconds must be non-negative"
            raise ValueError(msg)

        self._cycle_runner: CycleRunner = cycle_runner
        self._policy: NotificationPolicy = policy
        self._dispatcher: NotificationSink = dispatcher
        self._interval_seconds: float = interval_seconds
        self._startup_delay_seconds: float = startup_delay_seconds
        self._manual_guard: ManualTriggerGuard = manual_guard or ManualTriggerGuard()
        self._logger: logging.Logger = logger_obj or get_logger(__name__)

        self._loop_task: asyncio.Task[None] | None = None
        self._cycle_tasks: set[asyncio.Task[CycleReport | None]] = set()
        self._last_run_at: datetime | None = None
        self._next_run_at: datetime | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def last_run_at(self) -> datetime | None:
        return self._last_run_at

    @property
    def next_run_at(self) -> datetime | None:
        return self._next_run_at

    @property
    def manual_guard(self) -> ManualTriggerGuard:
        return self._manual_guard

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> int:
        """Number of background cycles currently running."""
        return len(self._cycle_tasks)

    async def run_full_cycle(self) -> CycleReport:
        """Probe every target, decide, and dispatch each payload in order."""
        report = await self._cycle_runner.run_cycle()
        with correlation_scope(report.cycle_id):
            for payload in self._policy.decide(report):
                _ = await self._dispatcher.dispatch(payload)
        self._last_run_at = datetime.now(UTC)
        return report

    async def trigger_manual(self) -> CycleReport:
        """Run a guarded full cycle and wait for it.

        Raises:
            ManualTriggerThrottledError: If the previous manual trigger was too recent
        """
        if not self._manual_guard.try_acquire():
            raise ManualTriggerThrottledError(self._manual_guard.retry_after_seconds())
        self._logger.info("Manual ping triggered")
        return await self.run_full_cycle()

    def trigger_manual_in_background(self) -> bool:
        """Start a guarded full cycle without waiting for it.

        Returns:
            True if a cycle was started, False if throttled
        """
        if not self._manual_guard.try_acquire():
            return False
        self._logger.info("Manual ping triggered in background")
        self._spawn_cycle()
        return True

    async def send_test_notification(self) -> tuple[DeliveryResult, ...]:
        """Dispatch the synthetic test payload; no targets are probed."""
        with correlation_scope(f"test-{uuid4().hex[:8]}"):
            self._logger.info("Sending test webhook notification")
            return await self._dispatcher.dispatch(build_test_payload())

    async def start(self) -> None:
        """Start the background timer loop."""
        if self.is_running:
            self._logger.warning("Scheduler already running")
            return
        self._loop_task = asyncio.create_task(self._run_loop(), name="pinger-scheduler")
        self._logger.info(
            "Scheduler started: first cycle in %.1fs, then every %.0fs",
            self._startup_delay_seconds,
            self._interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the timer loop and any in-flight background cycles."""
        tasks: list[asyncio.Task[None] | asyncio.Task[CycleReport | None]] = list(self._cycle_tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None

        for task in tasks:
            _ = task.cancel()
        if tasks:
            _ = await asyncio.gather(*tasks, return_exceptions=True)

        self._cycle_tasks.clear()
        self._next_run_at = None
        self._logger.info("Scheduler stopped")

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._startup_delay_seconds

        while True:
            delay = max(0.0, next_tick - loop.time())
            self._next_run_at = datetime.now(UTC) + timedelta(seconds=delay)
            await asyncio.sleep(delay)

            self._spawn_cycle()
            next_tick, skipped = next_tick_after(next_tick, loop.time(), self._interval_seconds)
            if skipped:
                self._logger.warning("Timer fell behind; skipped %d missed tick(s)", skipped)

    def _spawn_cycle(self) -> None:
        task = asyncio.create_task(self._guarded_cycle())
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def _guarded_cycle(self) -> CycleReport | None:
        try:
            return await self.run_full_cycle()
        except Exception as exc:
            self._logger.exception("Ping cycle failed: %s", sanitize_exception(exc))
            return None
