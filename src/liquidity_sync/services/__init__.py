# -*- coding: utf-8 -*-
"""Application services."""

from liquidity_sync.services.optimistic import (
    OptimisticUpdateCoordinator,
    OptimisticWindowRegistry,
    PositionFetcher,
    PositionFetchResult,
)
from liquidity_sync.services.pools import PoolDataService
from liquidity_sync.services.scheduler import CollectionSpec, FetchScheduler, RefreshOutcome

__all__ = [
    "CollectionSpec",
    "FetchScheduler",
    "OptimisticUpdateCoordinator",
    "OptimisticWindowRegistry",
    "PoolDataService",
    "PositionFetchResult",
    "PositionFetcher",
    "RefreshOutcome",
]
