"""Single-target HTTP probe."""

import logging
import time
from collections.abc import Mapping
from typing import Final

from onrender_pinger.types.models import ProbeOutcome
from onrender_pinger.types.protocols import HTTPClient
from onrender_pinger.utils.sanitization import sanitize_exception

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT: Final[str] = "OnRender-Pinger/1.0"
DEFAULT_PROBE_TIMEOUT: Final[float] = 30.0


class ProbeExecutor:
    """Issues one GET per target and classifies the result.

    Any completed request is a success whatever its status code; transport
    errors and timeouts become error outcomes. ``probe`` never raises apart
    from ``asyncio.CancelledError``.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        self._http_client: HTTPClient = http_client
        self._timeout: float = timeout
        self._headers: Mapping[str, str] = {"User-Agent": user_agent}

    @property
    def timeout(self) -> float:
        return self._timeout

    async def probe(self, url: str) -> ProbeOutcome:
        """Probe ``url`` and return its outcome.

        Latency covers the span from just before the request until response
        headers arrive; the body is never read.
        """
        started = time.perf_counter()
        try:
            response = await self._http_client.get(url, timeout=self._timeout, headers=self._headers)
        except TimeoutError:
            error = f"Request timed out after {self._timeout:g}s"
        except Exception as exc:
            error = sanitize_exception(exc)
        else:
            response_time_ms = round((time.perf_counter() - started) * 1000)
            logger.info(
                "%s - Status: %d - Response Time: %dms",
                url,
                response.status,
                response_time_ms,
            )
            return ProbeOutcome.succeeded(
                url,
                status_code=response.status,
                response_time_ms=response_time_ms,
            )

        logger.warning("%s - Error: %s", url, error)
        return ProbeOutcome.failed(url, error=error)
