"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols that establish
contracts for core application components without requiring inheritance.
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from onrender_pinger.types.models import DeliveryResult, NotificationPayload, Response


@runtime_checkable
class HTTPClient(Protocol):
    """Protocol for HTTP client operations.

    Both the probe executor and the webhook dispatcher depend on this
    interface rather than on a concrete session, so tests can substitute
    lightweight stubs.
    """

    async def get(
        self,
        url: str,
        *,
        timeout: float,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Send HTTP GET request and return once response headers arrive.

        Args:
            url: Target URL for the GET request
            timeout: Request timeout in seconds (keyword-only)
            headers: Extra request headers

        Returns:
            HTTP response with status and headers; the body is not read
        """
        ...

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
            payload: Request body data (JSON-encoded)
            timeout: Request timeout in seconds; None keeps the transport default

        Returns:
            HTTP response with status, body, and headers
        """
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for delivering a payload to every configured endpoint."""

    async def dispatch(self, payload: NotificationPayload) -> tuple[DeliveryResult, ...]:
        """Deliver ``payload`` best-effort; never raises for delivery failures.

        Returns:
            One result per endpoint attempted (empty when none are configured)
        """
        ...
