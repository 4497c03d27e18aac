"""Webhook notification delivery.

This package provides:
- Endpoint classification and per-format payload rendering (``formatters``)
- Concurrent best-effort delivery to every configured webhook (``dispatcher``)
"""

from onrender_pinger.notifications.dispatcher import WebhookDeliveryError, WebhookDispatcher
from onrender_pinger.notifications.formatters import (
    EndpointFormat,
    classify_endpoint,
    render_discord,
    render_generic,
    render_payload,
    render_slack,
)

__all__ = [
    "EndpointFormat",
    "WebhookDeliveryError",
    "WebhookDispatcher",
    "classify_endpoint",
    "render_discord",
    "render_generic",
    "render_payload",
    "render_slack",
]
