"""TTL cache store and key layout."""

from liquidity_sync.cache.keys import (
    borrower_info_key,
    pool_data_key,
    pools_collection_key,
    user_position_key,
)
from liquidity_sync.cache.store import (
    CacheEntry,
    TTLCacheStore,
    get_cache_store,
    set_cache_store,
)

__all__ = [
    "CacheEntry",
    "TTLCacheStore",
    "borrower_info_key",
    "get_cache_store",
    "pool_data_key",
    "pools_collection_key",
    "set_cache_store",
    "user_position_key",
]
