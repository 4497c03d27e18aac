"""HTTP client abstraction for probes and webhook delivery.

This module provides the aiohttp-backed implementation of the HTTPClient
Protocol. A single session is shared by every probe and every webhook POST
for the lifetime of the process.

The client does not retry: a failed probe is reported once per cycle and a
failed webhook delivery is logged and dropped. Callers decide how to turn
exceptions into domain values.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Self

import aiohttp

from onrender_pinger.types.models import Response
from onrender_pinger.utils.sanitization import truncate_identifier


class AIOHTTPClient:
    """Async HTTP client implementing the HTTPClient Protocol using aiohttp.

    Example:
        >>> async with AIOHTTPClient() as client:
        ...     response = await client.get("https://example.com", timeout=30.0)
        ...     _ = await client.post("https://hooks.example.com/notify", {"message": "test"})
    """

    def __init__(
        self,
        *,
        default_timeout: aiohttp.ClientTimeout | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            default_timeout: Session-wide timeout used when a call does not
                pass its own; defaults to aiohttp's transport default
        """
        self._default_timeout: aiohttp.ClientTimeout = default_timeout or aiohttp.ClientTimeout(total=300, sock_connect=30)

        # aiohttp session (created in __aenter__)
        self._session: aiohttp.ClientSession | None = None

        self._logger: logging.Logger = logging.getLogger(__name__)

    async def __aenter__(self) -> Self:
        """Enter async context manager and create aiohttp session."""
        self._session = aiohttp.ClientSession(
            timeout=self._default_timeout,
            json_serialize=json.dumps,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager and close the session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            msg = "HTTP client session not initialized. Use 'async with' context manager."
            raise RuntimeError(msg)
        return self._session

    async def get(
        self,
        url: str,
        *,
        timeout: float,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Send HTTP GET request and return once response headers arrive.

        The body is never read; the connection is released on return.

        Raises:
            TimeoutError: If the response does not start within ``timeout``
            ValueError: If URL is malformed
            aiohttp.ClientError: For connection issues
        """
        session = self._require_session()
        self._logger.debug("Initiating GET request to %s", url)

        try:
            async with asyncio.timeout(timeout):
                async with session.get(url, headers=dict(headers or {}), allow_redirects=True) as response:
                    return Response(
                        status=response.status,
                        body={},
                        headers=dict(response.headers),
                    )
        except TimeoutError:
            self._logger.debug("GET %s timed out after %.1fs", url, timeout)
            raise
        except aiohttp.InvalidURL as exc:
            raise ValueError(f"Malformed URL: {url}") from exc

    async def post(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        timeout: float | None = None,
    ) -> Response:
        """Send HTTP POST request with a JSON body.

        Args:
            url: Target URL for the POST request
            payload: Request body data (will be JSON-encoded)
            timeout: Request timeout in seconds; None keeps the session default

        Returns:
            HTTP response with status, body, and headers

        Raises:
            TimeoutError: If request exceeds timeout
            ValueError: If URL is malformed
            aiohttp.ClientError: For connection issues
        """
        session = self._require_session()
        self._logger.debug("Initiating POST request to %s...", truncate_identifier(url))

        try:
            async with asyncio.timeout(timeout):
                async with session.post(url, json=payload) as response:
                    body: Mapping[str, object]
                    try:
                        parsed: object = await response.json()  # pyright: ignore[reportAny]  # aiohttp returns Any
                    except (aiohttp.ContentTypeError, ValueError):
                        parsed = {}
                    body = parsed if isinstance(parsed, dict) else {}  # pyright: ignore[reportUnknownVariableType]

                    return Response(
                        status=response.status,
                        body=body,  # pyright: ignore[reportUnknownArgumentType]
                        headers=dict(response.headers),
                    )
        except TimeoutError:
            self._logger.debug("POST %s... timed out", truncate_identifier(url))
            raise
        except aiohttp.InvalidURL as exc:
            raise ValueError(f"Malformed URL: {truncate_identifier(url)}...") from exc
