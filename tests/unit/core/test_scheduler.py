"""Tests for the scheduler and manual trigger guard."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from _pytest.logging import LogCaptureFixture

from onrender_pinger.core.cycle import CycleRunner
from onrender_pinger.core.policy import NotificationPolicy
from onrender_pinger.core.probe import ProbeExecutor
from onrender_pinger.core.scheduler import (
    ManualTriggerGuard,
    ManualTriggerThrottledError,
    Scheduler,
    next_tick_after,
)
from onrender_pinger.types.models import DeliveryResult, NotificationPayload, NotificationType
from onrender_pinger.utils.logging import get_correlation_id

if TYPE_CHECKING:
    from conftest import StubHTTPClient


class RecordingSink:
    """Test double implementing the NotificationSink Protocol."""

    def __init__(self) -> None:
        self.payloads: list[NotificationPayload] = []
        self.correlation_ids: list[str | None] = []

    async def dispatch(self, payload: NotificationPayload) -> tuple[DeliveryResult, ...]:
        self.payloads.append(payload)
        self.correlation_ids.append(get_correlation_id())
        return (
            DeliveryResult(
                endpoint="https://hooks.example.com/x",
                endpoint_format="generic",
                success=True,
                error_message=None,
                delivery_time_ms=1.0,
            ),
        )


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now: float = start

    def __call__(self) -> float:
        return self.now


def _scheduler(
    client: StubHTTPClient,
    sink: RecordingSink,
    urls: str | None = "https://a.test,https://b.test",
    *,
    notify_success: bool = False,
    interval_seconds: float = 900.0,
    startup_delay_seconds: float = 5.0,
    manual_guard: ManualTriggerGuard | None = None,
    url_source: object = None,
) -> Scheduler:
    source = url_source if callable(url_source) else (lambda: urls or "")
    runner = CycleRunner(source, ProbeExecutor(client), correlation_id_factory=lambda: "cycle-1")  # pyright: ignore[reportArgumentType]
    return Scheduler(
        runner,
        NotificationPolicy(notify_success),
        sink,
        interval_seconds=interval_seconds,
        startup_delay_seconds=startup_delay_seconds,
        manual_guard=manual_guard,
    )


class TestManualTriggerGuard:
    """Test the minimum-interval throttle."""

    def test_first_trigger_is_accepted(self) -> None:
        guard = ManualTriggerGuard(60, clock=FakeClock())

        assert guard.try_acquire()

    def test_second_trigger_inside_interval_is_rejected(self) -> None:
        clock = FakeClock()
        guard = ManualTriggerGuard(60, clock=clock)
        assert guard.try_acquire()

        clock.now += 30

        assert not guard.try_acquire()
        assert guard.retry_after_seconds() == pytest.approx(30.0)

    def test_rejection_does_not_extend_the_window(self) -> None:
        clock = FakeClock()
        guard = ManualTriggerGuard(60, clock=clock)
        assert guard.try_acquire()
        clock.now += 59
        assert not guard.try_acquire()

        clock.now += 1

        assert guard.try_acquire()

    def test_zero_interval_never_throttles(self) -> None:
        guard = ManualTriggerGuard(0, clock=FakeClock())

        assert guard.try_acquire()
        assert guard.try_acquire()

    def test_retry_after_is_zero_before_first_trigger(self) -> None:
        assert ManualTriggerGuard(60).retry_after_seconds() == 0.0

    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            _ = ManualTriggerGuard(-1)


class TestRunFullCycle:
    """Test probe, decide, dispatch wiring."""

    async def test_failure_dispatches_error_payload(self, stub_http_client: StubHTTPClient) -> None:
        stub_http_client.get_results["https://b.test"] = TimeoutError()
        sink = RecordingSink()
        scheduler = _scheduler(stub_http_client, sink)

        report = await scheduler.run_full_cycle()

        assert report.failed_count == 1
        assert len(sink.payloads) == 1
        assert sink.payloads[0].type is NotificationType.ERROR
        assert scheduler.last_run_at is not None

    async def test_dispatch_runs_under_cycle_correlation_id(self, stub_http_client: StubHTTPClient) -> None:
        stub_http_client.get_results["https://a.test"] = TimeoutError()
        sink = RecordingSink()

        _ = await _scheduler(stub_http_client, sink).run_full_cycle()

        assert sink.correlation_ids == ["cycle-1"]

    async def test_healthy_cycle_without_flag_dispatches_nothing(self, stub_http_client: StubHTTPClient) -> None:
        sink = RecordingSink()

        _ = await _scheduler(stub_http_client, sink).run_full_cycle()

        assert sink.payloads == []

    async def test_healthy_cycle_with_flag_dispatches_success(self, stub_http_client: StubHTTPClient) -> None:
        sink = RecordingSink()

        _ = await _scheduler(stub_http_client, sink, notify_success=True).run_full_cycle()

        assert [payload.type for payload in sink.payloads] == [NotificationType.SUCCESS]


class TestManualTrigger:
    """Test guarded manual cycles."""

    async def test_manual_trigger_runs_cycle(self, stub_http_client: StubHTTPClient) -> None:
        scheduler = _scheduler(stub_http_client, RecordingSink())

        report = await scheduler.trigger_manual()

        assert report.total == 2

    async def test_second_manual_trigger_is_throttled(self, stub_http_client: StubHTTPClient) -> None:
        clock = FakeClock()
        scheduler = _scheduler(
            stub_http_client,
            RecordingSink(),
            manual_guard=ManualTriggerGuard(60, clock=clock),
        )
        _ = await scheduler.trigger_manual()
        clock.now += 10

        with pytest.raises(ManualTriggerThrottledError) as exc_info:
            _ = await scheduler.trigger_manual()

        assert exc_info.value.retry_after_seconds == pytest.approx(50.0)
        assert len(stub_http_client.get_calls) == 2

    async def test_background_trigger_respects_guard(self, stub_http_client: StubHTTPClient) -> None:
        scheduler = _scheduler(
            stub_http_client,
            RecordingSink(),
            manual_guard=ManualTriggerGuard(60, clock=FakeClock()),
        )

        assert scheduler.trigger_manual_in_background()
        assert not scheduler.trigger_manual_in_background()

        await scheduler.stop()

    async def test_send_test_notification_skips_probing(self, stub_http_client: StubHTTPClient) -> None:
        sink = RecordingSink()
        scheduler = _scheduler(stub_http_client, sink)

        results = await scheduler.send_test_notification()

        assert len(results) == 1
        assert stub_http_client.get_calls == []
        assert sink.payloads[0].type is NotificationType.TEST


class TestBackgroundLoop:
    """Test the timer loop."""

    async def test_loop_runs_initial_and_periodic_cycles(self, stub_http_client: StubHTTPClient) -> None:
        scheduler = _scheduler(
            stub_http_client,
            RecordingSink(),
            urls="https://a.test",
            startup_delay_seconds=0.01,
            interval_seconds=0.05,
        )

        await scheduler.start()
        assert scheduler.is_running
        assert scheduler.next_run_at is not None
        await asyncio.sleep(0.14)
        await scheduler.stop()

        assert len(stub_http_client.get_calls) >= 2
        assert not scheduler.is_running
        assert scheduler.last_run_at is not None

    async def test_loop_survives_failing_cycle(
        self,
        stub_http_client: StubHTTPClient,
        caplog: LogCaptureFixture,
    ) -> None:
        calls = 0

        def flaky_source() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("config reload failed")
            return "https://a.test"

        scheduler = _scheduler(
            stub_http_client,
            RecordingSink(),
            url_source=flaky_source,
            startup_delay_seconds=0.0,
            interval_seconds=0.03,
        )

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert calls >= 2
        assert len(stub_http_client.get_calls) >= 1
        assert any("Ping cycle failed" in record.getMessage() for record in caplog.records)

    async def test_ticks_do_not_wait_for_slow_cycles(self, stub_http_client: StubHTTPClient) -> None:
        stub_http_client.get_delays["https://slow.test"] = 0.5
        scheduler = _scheduler(
            stub_http_client,
            RecordingSink(),
            urls="https://slow.test",
            startup_delay_seconds=0.0,
            interval_seconds=0.05,
        )

        await scheduler.start()
        await asyncio.sleep(0.12)
        overlapping = scheduler.in_flight
        await scheduler.stop()

        assert overlapping >= 2
        assert scheduler.in_flight == 0

    async def test_start_twice_is_harmless(self, stub_http_client: StubHTTPClient) -> None:
        scheduler = _scheduler(stub_http_client, RecordingSink())

        await scheduler.start()
        await scheduler.start()
        await scheduler.stop()

        assert not scheduler.is_running


class TestNextTickAfter:
    """Tick arithmetic after each timer wake-up."""

    def test_on_time_wakeup_advances_one_interval(self) -> None:
        assert next_tick_after(100.0, 100.01, 10.0) == (110.0, 0)

    def test_late_wakeup_within_interval_keeps_alignment(self) -> None:
        assert next_tick_after(100.0, 109.5, 10.0) == (110.0, 0)

    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (110.0, (120.0, 1)),
            (135.0, (140.0, 3)),
            (1000.5, (1010.0, 90)),
        ],
    )
    def test_clock_jump_skips_to_next_future_tick(self, now: float, expected: tuple[float, int]) -> None:
        upcoming, skipped = next_tick_after(100.0, now, 10.0)

        assert (upcoming, skipped) == expected
        assert upcoming > now
        assert (upcoming - 100.0) % 10.0 == 0


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"interval_seconds": 0}, "interval_seconds"),
        ({"startup_delay_seconds": -1}, "startup_delay_seconds"),
    ],
)
def test_rejects_invalid_timing(stub_http_client: StubHTTPClient, kwargs: dict[str, float], match: str) -> None:
    with pytest.raises(ValueError, match=match):
        _ = _scheduler(stub_http_client, RecordingSink(), **kwargs)  # pyright: ignore[reportArgumentType]
