# -*- coding: utf-8 -*-
"""Unit tests for AsyncHttpClient retry policy (no network)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import aiohttp
import pytest

from liquidity_sync.clients.http import AsyncHttpClient
from liquidity_sync.config import Settings
from liquidity_sync.exceptions import BackendAPIError, RateLimitError


class FakeSession:
    """Replays one scripted reply per request: (status, body, headers) or an exception."""

    def __init__(self, *replies: Any) -> None:
        self._replies = list(replies)
        self.calls: list[tuple[str, str, Any]] = []
        self.closed = False

    @asynccontextmanager
    async def request(self, method: str, url: str, params: Any = None) -> AsyncIterator[Any]:
        self.calls.append((method, url, params))
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, body, headers = reply
        yield SimpleNamespace(status=status, headers=headers, json=AsyncMock(return_value=body))


def _client(session: FakeSession, max_retries: int = 3) -> AsyncHttpClient:
    settings = Settings.from_env(api={"max_retries": max_retries})
    client = AsyncHttpClient(settings, session=session)  # type: ignore[arg-type]
    client._backoff_delay = lambda attempt: 0.0  # type: ignore[method-assign]
    return client


async def test_get_returns_json_body() -> None:
    session = FakeSession((200, {"status": 200, "data": []}, {}))

    body = await _client(session).get("http://backend/getPools", params={"a": "1"})

    assert body == {"status": 200, "data": []}
    assert session.calls == [("GET", "http://backend/getPools", {"a": "1"})]


async def test_transient_errors_are_retried() -> None:
    session = FakeSession(
        aiohttp.ClientConnectionError("reset"),
        (503, None, {}),
        (200, [1, 2], {}),
    )

    assert await _client(session).get("http://backend/x") == [1, 2]
    assert len(session.calls) == 3


async def test_client_error_status_fails_without_retry() -> None:
    session = FakeSession((404, None, {}), (200, [], {}))

    with pytest.raises(BackendAPIError) as exc_info:
        await _client(session).get("http://backend/missing")

    assert exc_info.value.status_code == 404
    assert len(session.calls) == 1


async def test_exhausted_retries_raise_backend_error_with_cause() -> None:
    session = FakeSession((502, None, {}), (502, None, {}))

    with pytest.raises(BackendAPIError) as exc_info:
        await _client(session, max_retries=2).get("http://backend/x")

    assert not isinstance(exc_info.value, RateLimitError)
    assert exc_info.value.status_code == 502
    assert isinstance(exc_info.value.cause, BackendAPIError)


async def test_rate_limit_exhausted_raises_rate_limit_error() -> None:
    session = FakeSession((429, None, {"Retry-After": "0"}), (429, None, {"Retry-After": "0"}))

    with pytest.raises(RateLimitError) as exc_info:
        await _client(session, max_retries=2).get("http://backend/x")

    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 0.0


async def test_aclose_leaves_injected_session_open() -> None:
    session = FakeSession()
    client = _client(session)

    await client.aclose()

    assert session.closed is False
