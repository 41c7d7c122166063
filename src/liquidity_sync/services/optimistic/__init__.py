"""Optimistic updates: window registry, coordinator and authoritative position fetcher."""

from liquidity_sync.services.optimistic.coordinator import (
    OptimisticUpdateCoordinator,
    positions_collection_key,
)
from liquidity_sync.services.optimistic.position_fetcher import PositionFetcher, PositionFetchResult
from liquidity_sync.services.optimistic.windows import OptimisticWindowRegistry

__all__ = [
    "OptimisticUpdateCoordinator",
    "OptimisticWindowRegistry",
    "PositionFetchResult",
    "PositionFetcher",
    "positions_collection_key",
]
