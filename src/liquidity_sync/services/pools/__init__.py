"""Pool collection service."""

from liquidity_sync.services.pools.pool_data_service import (
    NO_POOLS_ERROR,
    POOLS_COLLECTION,
    POOLS_LAST_FETCHED_KEY,
    PoolDataService,
    sort_pools,
)

__all__ = [
    "NO_POOLS_ERROR",
    "POOLS_COLLECTION",
    "POOLS_LAST_FETCHED_KEY",
    "PoolDataService",
    "sort_pools",
]
