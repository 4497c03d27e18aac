"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

import pytest

from onrender_pinger.types.models import Response
from onrender_pinger.utils.logging import clear_correlation_id


@dataclass
class RecordedGet:
    url: str
    timeout: float
    headers: Mapping[str, str]


@dataclass
class RecordedPost:
    url: str
    payload: Mapping[str, object]
    timeout: float | None


@dataclass
class StubHTTPClient:
    """Test double implementing the HTTPClient Protocol.

    Results are looked up by URL; anything not configured answers 200.
    Configuring an exception makes the call raise it.
    """

    get_results: dict[str, Response | BaseException] = field(default_factory=dict)
    post_results: dict[str, Response | BaseException] = field(default_factory=dict)
    get_delays: dict[str, float] = field(default_factory=dict)
    get_calls: list[RecordedGet] = field(default_factory=list)
    post_calls: list[RecordedPost] = field(default_factory=list)

    async def get(
        self,
        url: str,
        *,
        timeout: float,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        self.get_calls.append(RecordedGet(url=url, timeout=timeout, headers=dict(headers or {})))
        delay = self.get_delays.get(url, 0.0)
        if delay:
            await asyncio.sleep(delay)
        result = self.get_results.get(url, Response(status=200, body={}, headers={}))
        if isinstance(result, BaseException):
            raise result
        return result

    async def post(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        timeout: float | None = None,
    ) -> Response:
        self.post_calls.append(RecordedPost(url=url, payload=payload, timeout=timeout))
        result = self.post_results.get(url, Response(status=204, body={}, headers={}))
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def stub_http_client() -> StubHTTPClient:
    """Provide a fresh HTTP client stub."""
    return StubHTTPClient()


@pytest.fixture(autouse=True)
def reset_correlation_id() -> Iterator[None]:
    """Ensure no correlation ID leaks between tests."""
    clear_correlation_id()
    yield
    clear_correlation_id()
