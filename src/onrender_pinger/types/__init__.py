"""Type definitions and protocols for onrender-pinger.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
- Type aliases (PEP 695 modern syntax)
"""

from onrender_pinger.types.aliases import CorrelationIDFactory, TextSource
from onrender_pinger.types.models import (
    CycleReport,
    DeliveryResult,
    NotificationDetail,
    NotificationPayload,
    NotificationType,
    OutcomeKind,
    ProbeOutcome,
    Response,
)
from onrender_pinger.types.protocols import HTTPClient, NotificationSink

__all__ = [
    # Type aliases
    "CorrelationIDFactory",
    "TextSource",
    # Data models
    "CycleReport",
    "DeliveryResult",
    "NotificationDetail",
    "NotificationPayload",
    "NotificationType",
    "OutcomeKind",
    "ProbeOutcome",
    "Response",
    # Protocols
    "HTTPClient",
    "NotificationSink",
]
