"""Fetch scheduling exceptions."""

from __future__ import annotations

from liquidity_sync.exceptions.exceptions import LiquiditySyncError


class UnknownCollectionError(LiquiditySyncError, KeyError):
    """Raised when refreshing a collection key that was never registered."""

    def __init__(self, collection_key: str) -> None:
        super().__init__(collection_key)
        self.collection_key = collection_key

    def __str__(self) -> str:
        return f"Unknown collection: {self.collection_key!r}"


class CollectionRefreshError(LiquiditySyncError):
    """Raised to refresh callers when the fetch for a collection failed.

    The collection keeps its last good state; the next refresh may succeed.
    """

    def __init__(self, collection_key: str, *, cause: Exception | None = None) -> None:
        message = f"Refresh of {collection_key!r} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.collection_key = collection_key
        self.cause = cause


class PoolsUnavailableError(LiquiditySyncError):
    """Raised when the pool list is empty and could not be loaded."""

    def __init__(self, message: str = "No pools available at this time") -> None:
        super().__init__(message)
