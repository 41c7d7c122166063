"""Custom exceptions for the pools backend and the synchronization engine."""

from __future__ import annotations


class LiquiditySyncError(Exception):
    """Base exception for liquidity-sync errors."""

    pass


class MissingRequiredConfigError(LiquiditySyncError):
    """Raised when a required configuration value is missing."""

    pass


class BackendAPIError(LiquiditySyncError):
    """Raised when a backend request fails after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RateLimitError(BackendAPIError):
    """Raised when the backend returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429)
        self.retry_after = retry_after
