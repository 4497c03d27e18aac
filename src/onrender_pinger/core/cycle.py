"""Cycle runner: one concurrent sweep of probes across every target."""

import asyncio
import logging
from datetime import UTC, datetime
from uuid import uuid4

from onrender_pinger.core.probe import ProbeExecutor
from onrender_pinger.core.targets import resolve_targets
from onrender_pinger.types.aliases import CorrelationIDFactory, TextSource
from onrender_pinger.types.models import CycleReport, ProbeOutcome
from onrender_pinger.utils.logging import correlation_scope, get_logger, log_with_context
from onrender_pinger.utils.sanitization import sanitize_exception


class CycleRunner:
    """Resolve targets, probe them concurrently and aggregate a report.

    The URL source is read on every cycle, so configuration changes apply
    to the next cycle without a restart. Probes are joined with
    ``asyncio.gather(return_exceptions=True)``: one failing probe never
    aborts the others, and an unexpected exception becomes an error outcome
    for that URL.
    """

    def __init__(
        self,
        url_source: TextSource,
        executor: ProbeExecutor,
        *,
        max_concurrency: int | None = None,
        correlation_id_factory: CorrelationIDFactory | None = None,
        logger_obj: logging.Logger | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency <= 0:
            msg = "max_concurrency must be greater than zero"
            raise ValueError(msg)

        self._url_source: TextSource = url_source
        self._executor: ProbeExecutor = executor
        self._max_concurrency: int | None = max_concurrency
        self._correlation_id_factory: CorrelationIDFactory = correlation_id_factory or (lambda: uuid4().hex[:12])
        self._logger: logging.Logger = logger_obj or get_logger(__name__)

    async def run_cycle(self) -> CycleReport:
        """Run one cycle and return its report.

        Every log line emitted while the cycle runs carries its cycle ID.
        """
        cycle_id = self._correlation_id_factory()
        with correlation_scope(cycle_id):
            started_at = datetime.now(UTC)
            urls = resolve_targets(self._url_source())

            if not urls:
                self._logger.warning("No valid URLs configured; skipping ping cycle")
                return CycleReport.empty(cycle_id, started_at=started_at)

            log_with_context(
                self._logger,
                logging.INFO,
                f"Starting ping cycle for {len(urls)} URLs",
                extra={"cycle_id": cycle_id, "url_count": len(urls)},
            )

            semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
            results = await asyncio.gather(
                *(self._probe(url, semaphore) for url in urls),
                return_exceptions=True,
            )

            outcomes = tuple(self._to_outcome(url, result) for url, result in zip(urls, results, strict=True))
            report = CycleReport(
                cycle_id=cycle_id,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                outcomes=outcomes,
            )

            self._logger.info(
                "Ping cycle completed: %d/%d successful",
                report.success_count,
                report.total,
            )
            return report

    async def _probe(self, url: str, semaphore: asyncio.Semaphore | None) -> ProbeOutcome:
        if semaphore is None:
            return await self._executor.probe(url)
        async with semaphore:
            return await self._executor.probe(url)

    def _to_outcome(self, url: str, result: ProbeOutcome | BaseException) -> ProbeOutcome:
        if isinstance(result, ProbeOutcome):
            return result
        if not isinstance(result, Exception):
            raise result

        error = sanitize_exception(result)
        self._logger.error("Unexpected error probing %s: %s", url, error)
        return ProbeOutcome.failed(url, error=error)
