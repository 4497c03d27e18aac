"""Data models for onrender-pinger.

This module defines immutable dataclasses used throughout the application
for type-safe data transfer between the probing, policy and delivery
components.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from onrender_pinger.utils.formatting import format_timestamp


class OutcomeKind(StrEnum):
    """Classification of a single probe."""

    SUCCESS = "success"
    ERROR = "error"


class NotificationType(StrEnum):
    """Kind of notification; values are the wire strings."""

    ERROR = "error"
    SUCCESS = "success"
    TEST = "test"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class ProbeOutcome:
    """Result of probing one target URL.

    Exactly one half is populated: ``status_code`` and ``response_time_ms``
    for a success, ``error`` for a failure. The kind always matches the
    populated half.
    """

    url: str
    kind: OutcomeKind
    status_code: int | None = None
    response_time_ms: int | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        has_response = self.status_code is not None and self.response_time_ms is not None
        has_error = self.error is not None
        if self.kind is OutcomeKind.SUCCESS and (not has_response or has_error):
            msg = "success outcome requires status_code and response_time_ms and no error"
            raise ValueError(msg)
        if self.kind is OutcomeKind.ERROR and (not has_error or self.status_code is not None or self.response_time_ms is not None):
            msg = "error outcome requires an error description and no response data"
            raise ValueError(msg)

    @classmethod
    def succeeded(
        cls,
        url: str,
        *,
        status_code: int,
        response_time_ms: int,
        timestamp: datetime | None = None,
    ) -> ProbeOutcome:
        return cls(
            url=url,
            kind=OutcomeKind.SUCCESS,
            status_code=status_code,
            response_time_ms=response_time_ms,
            timestamp=timestamp or _utcnow(),
        )

    @classmethod
    def failed(cls, url: str, *, error: str, timestamp: datetime | None = None) -> ProbeOutcome:
        return cls(
            url=url,
            kind=OutcomeKind.ERROR,
            error=error,
            timestamp=timestamp or _utcnow(),
        )

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass(slots=True, frozen=True)
class CycleReport:
    """Aggregate of every probe outcome from one cycle.

    ``outcomes`` keeps the configured URL order; ``successful`` and
    ``failed`` are order-preserving views over it.
    """

    cycle_id: str
    started_at: datetime
    completed_at: datetime
    outcomes: tuple[ProbeOutcome, ...] = ()

    @classmethod
    def empty(cls, cycle_id: str, *, started_at: datetime | None = None) -> CycleReport:
        """Build the no-op report for a cycle that had nothing to probe."""
        started = started_at or _utcnow()
        return cls(cycle_id=cycle_id, started_at=started, completed_at=started)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def successful(self) -> tuple[ProbeOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.is_success)

    @property
    def failed(self) -> tuple[ProbeOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.is_success)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def is_empty(self) -> bool:
        return not self.outcomes


@dataclass(slots=True, frozen=True)
class NotificationDetail:
    """Per-URL detail record carried by a notification payload."""

    url: str
    status: str
    status_code: int | None = None
    response_time_ms: int | None = None
    error: str | None = None
    timestamp: datetime | None = None

    @classmethod
    def from_outcome(cls, outcome: ProbeOutcome) -> NotificationDetail:
        return cls(
            url=outcome.url,
            status=outcome.kind.value,
            status_code=outcome.status_code,
            response_time_ms=outcome.response_time_ms,
            error=outcome.error,
            timestamp=outcome.timestamp,
        )

    def to_dict(self) -> dict[str, object]:
        """Render the camelCase JSON shape, omitting unset fields."""
        data: dict[str, object] = {"url": self.url, "status": self.status}
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.response_time_ms is not None:
            data["responseTime"] = self.response_time_ms
        if self.error is not None:
            data["error"] = self.error
        if self.timestamp is not None:
            data["timestamp"] = format_timestamp(self.timestamp)
        return data


@dataclass(slots=True, frozen=True)
class NotificationPayload:
    """Message delivered to every configured webhook endpoint."""

    type: NotificationType
    message: str
    summary: str
    details: tuple[NotificationDetail, ...] = ()
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def is_error(self) -> bool:
        return self.type is NotificationType.ERROR

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.type.value,
            "message": self.message,
            "details": [detail.to_dict() for detail in self.details],
            "summary": self.summary,
        }


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    """Outcome of one webhook delivery attempt.

    ``endpoint`` holds the truncated identifier only, never the full URL.
    """

    endpoint: str
    endpoint_format: str
    success: bool
    error_message: str | None
    delivery_time_ms: float


@dataclass(slots=True)
class Response:
    """HTTP response.

    Represents an HTTP response with status code, body, and headers.
    """

    status: int
    body: Mapping[str, object]
    headers: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
