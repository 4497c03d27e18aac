"""Webhook dispatcher delivering payloads to every configured endpoint.

Endpoints are resolved from configuration on every dispatch, classified by
URL, rendered in their wire format and POSTed concurrently. Deliveries are
joined with ``asyncio.gather(return_exceptions=True)`` so one unreachable
endpoint never affects the others. Failures are logged and returned as
results; they are never raised and never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time

from onrender_pinger.core.targets import split_list
from onrender_pinger.notifications.formatters import EndpointFormat, classify_endpoint, render_payload
from onrender_pinger.types.aliases import TextSource
from onrender_pinger.types.models import DeliveryResult, NotificationPayload
from onrender_pinger.types.protocols import HTTPClient
from onrender_pinger.utils.logging import get_logger, log_with_context
from onrender_pinger.utils.sanitization import sanitize_exception, truncate_identifier

__all__ = ["WebhookDeliveryError", "WebhookDispatcher"]


class WebhookDeliveryError(Exception):
    """Raised internally when an endpoint answers with a non-2xx status."""

    def __init__(self, status: int) -> None:
        self.status: int = status
        super().__init__(f"HTTP {status}")


class WebhookDispatcher:
    """Deliver notification payloads to all configured webhooks."""

    def __init__(
        self,
        http_client: HTTPClient,
        webhook_source: TextSource,
        *,
        timeout_seconds: float | None = None,
        dry_run_enabled: bool = False,
        logger_obj: logging.Logger | None = None,
    ) -> None:
        if timeout_seconds is not None and timeout_seconds <= 0:
            msg = "timeout_seconds must be greater than zero"
            raise ValueError(msg)

        self._http_client: HTTPClient = http_client
        self._webhook_source: TextSource = webhook_source
        self._timeout_seconds: float | None = timeout_seconds
        self._dry_run_enabled: bool = dry_run_enabled
        self._logger: logging.Logger = logger_obj or get_logger(__name__)

    @property
    def dry_run_enabled(self) -> bool:
        return self._dry_run_enabled

    async def dispatch(self, payload: NotificationPayload) -> tuple[DeliveryResult, ...]:
        """Deliver ``payload`` to every configured endpoint.

        Returns one result per endpoint in configured order; an empty
        webhook list returns an empty tuple without logging, and a webhook
        source that raises is logged and also yields an empty tuple.
        """
        try:
            endpoints = split_list(self._webhook_source())
        except Exception as exc:
            self._logger.error("Failed to resolve webhook endpoints: %s", sanitize_exception(exc))
            return ()
        if not endpoints:
            return ()

        if self._dry_run_enabled:
            return self._handle_dry_run(payload, endpoints)

        results = await asyncio.gather(
            *(self._deliver(endpoint, payload) for endpoint in endpoints),
            return_exceptions=True,
        )

        delivered: list[DeliveryResult] = []
        for endpoint, result in zip(endpoints, results, strict=True):
            if isinstance(result, DeliveryResult):
                delivered.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            # _deliver converts its own failures; anything here escaped it
            error_message = sanitize_exception(result)
            self._log_failure(endpoint, error_message)
            delivered.append(
                DeliveryResult(
                    endpoint=truncate_identifier(endpoint),
                    endpoint_format=classify_endpoint(endpoint).value,
                    success=False,
                    error_message=error_message,
                    delivery_time_ms=0.0,
                )
            )
        return tuple(delivered)

    async def _deliver(self, endpoint: str, payload: NotificationPayload) -> DeliveryResult:
        endpoint_format = classify_endpoint(endpoint)
        identifier = truncate_identifier(endpoint)
        start = time.perf_counter()

        try:
            body = render_payload(payload, endpoint_format)
            response = await self._http_client.post(endpoint, body, timeout=self._timeout_seconds)
            if not response.ok:
                raise WebhookDeliveryError(response.status)
        except TimeoutError:
            error_message = "Webhook delivery timed out"
        except WebhookDeliveryError as exc:
            error_message = str(exc)
        except Exception as exc:
            error_message = sanitize_exception(exc)
        else:
            delivery_ms = (time.perf_counter() - start) * 1000.0
            log_with_context(
                self._logger,
                logging.INFO,
                f"Webhook sent to {identifier}...",
                extra={
                    "endpoint_format": endpoint_format.value,
                    "notification_type": payload.type.value,
                    "delivery_time_ms": round(delivery_ms, 1),
                },
            )
            return DeliveryResult(
                endpoint=identifier,
                endpoint_format=endpoint_format.value,
                success=True,
                error_message=None,
                delivery_time_ms=delivery_ms,
            )

        delivery_ms = (time.perf_counter() - start) * 1000.0
        self._log_failure(endpoint, error_message, endpoint_format=endpoint_format)
        return DeliveryResult(
            endpoint=identifier,
            endpoint_format=endpoint_format.value,
            success=False,
            error_message=error_message,
            delivery_time_ms=delivery_ms,
        )

    def _log_failure(
        self,
        endpoint: str,
        error_message: str,
        *,
        endpoint_format: EndpointFormat | None = None,
    ) -> None:
        log_with_context(
            self._logger,
            logging.ERROR,
            f"Webhook failed for {truncate_identifier(endpoint)}...: {error_message}",
            extra={"endpoint_format": (endpoint_format or classify_endpoint(endpoint)).value},
        )

    def _handle_dry_run(
        self,
        payload: NotificationPayload,
        endpoints: list[str],
    ) -> tuple[DeliveryResult, ...]:
        """Log the rendered body per endpoint and report synthetic successes."""
        results: list[DeliveryResult] = []
        for endpoint in endpoints:
            endpoint_format = classify_endpoint(endpoint)
            identifier = truncate_identifier(endpoint)
            rendered = render_payload(payload, endpoint_format)
            body = json.dumps(rendered, ensure_ascii=False, default=str)
            log_with_context(
                self._logger,
                logging.INFO,
                f"Dry-run webhook for {identifier}...: {body}",
                extra={
                    "endpoint_format": endpoint_format.value,
                    "notification_type": payload.type.value,
                    "rendered_payload": rendered,
                },
            )
            results.append(
                DeliveryResult(
                    endpoint=identifier,
                    endpoint_format=endpoint_format.value,
                    success=True,
                    error_message=None,
                    delivery_time_ms=0.0,
                )
            )
        return tuple(results)
