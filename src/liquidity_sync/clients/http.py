# -*- coding: utf-8 -*-
"""Async HTTP client for the pools backend with retries and rate-limit handling."""

from __future__ import annotations

import asyncio
import random
import uuid
from typing import Any, Callable, Dict, Optional

import aiohttp
import structlog
from structlog.contextvars import bound_contextvars

from liquidity_sync.config import Settings
from liquidity_sync.exceptions import BackendAPIError, RateLimitError

# Gateway and availability errors are worth another attempt; other 4xx/5xx are not.
_RETRYABLE_STATUSES = frozenset({500, 502, 503, 504})


class AsyncHttpClient:
    """JSON-over-HTTP client used by PoolApiClient.

    Each request is attempted up to api.max_retries times. Connection errors,
    timeouts, 5xx gateway errors and 429 are retried (429 honours Retry-After);
    any other error status fails immediately. The aiohttp session is created
    on first use unless one is injected; close it with aclose().
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (api.timeout_seconds, api.max_retries).
            session: Optional shared aiohttp session; the client does not close it.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._timeout = aiohttp.ClientTimeout(total=settings.api.timeout_seconds)
        self._attempts = settings.api.max_retries
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the session if this client created it."""
        session, self._session = self._session, None
        if self._owns_session and session is not None and not session.closed:
            await session.close()

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET url and return the decoded JSON body.

        Raises:
            RateLimitError: If the last attempt was answered with 429.
            BackendAPIError: On a non-retryable status, or when attempts run out.
        """
        return await self._request_json("GET", url, params)

    async def _request_json(self, method: str, url: str, params: Optional[Dict[str, Any]]) -> Any:
        failure: Optional[Exception] = None
        with bound_contextvars(
            http_method=method,
            http_url=url,
            http_request_id=uuid.uuid4().hex[:12],
        ):
            for attempt in range(self._attempts):
                delay = self._backoff_delay(attempt)
                try:
                    session = self._ensure_session()
                    async with session.request(method, url, params=params or None) as response:
                        status = response.status
                        if status < 400:
                            return await response.json(content_type=None)
                        if status == 429:
                            retry_after = self._retry_after(response)
                            failure = RateLimitError(url=url, retry_after=retry_after)
                            if retry_after is not None and retry_after > 0:
                                delay = retry_after
                        elif status in _RETRYABLE_STATUSES:
                            failure = BackendAPIError(f"HTTP {status}", url=url, status_code=status)
                        else:
                            self._logger.error("http_request_rejected", http_status_code=status)
                            raise BackendAPIError(
                                f"{method} {url} returned HTTP {status}",
                                url=url,
                                status_code=status,
                            )
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    failure = e

                self._logger.warning(
                    "http_request_retry",
                    http_attempt=attempt + 1,
                    http_attempts=self._attempts,
                    http_delay_seconds=round(delay, 3),
                    error_type=type(failure).__name__,
                    error=str(failure),
                )
                if attempt + 1 < self._attempts:
                    await asyncio.sleep(delay)

            raise self._exhausted(method, url, failure)

    def _exhausted(self, method: str, url: str, failure: Optional[Exception]) -> BackendAPIError:
        if isinstance(failure, RateLimitError):
            self._logger.error("http_rate_limit_exhausted", http_attempts=self._attempts)
            return failure
        status_code = failure.status_code if isinstance(failure, BackendAPIError) else None
        self._logger.error(
            "http_request_failed",
            http_attempts=self._attempts,
            http_status_code=status_code,
            error_type=type(failure).__name__,
        )
        return BackendAPIError(
            f"{method} failed after {self._attempts} attempts: {url}",
            url=url,
            status_code=status_code,
            cause=failure,
        )

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff (0.25 s doubling, capped at 4 s) plus jitter."""
        return min(4.0, 0.25 * 2**attempt) + random.uniform(0.0, 0.15)

    @staticmethod
    def _retry_after(response: aiohttp.ClientResponse) -> Optional[float]:
        value = response.headers.get("Retry-After")
        try:
            return float(value) if value else None
        except ValueError:
            return None
