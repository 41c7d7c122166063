"""Exceptions subpackage."""

from liquidity_sync.exceptions.exceptions import (
    BackendAPIError,
    LiquiditySyncError,
    MissingRequiredConfigError,
    RateLimitError,
)
from liquidity_sync.exceptions.sync_exceptions import (
    CollectionRefreshError,
    PoolsUnavailableError,
    UnknownCollectionError,
)

__all__ = [
    "BackendAPIError",
    "CollectionRefreshError",
    "LiquiditySyncError",
    "MissingRequiredConfigError",
    "PoolsUnavailableError",
    "RateLimitError",
    "UnknownCollectionError",
]
