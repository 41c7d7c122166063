"""liquidity-sync: client-side state synchronization for liquidity pools and user positions."""

from liquidity_sync.cache import TTLCacheStore, get_cache_store
from liquidity_sync.config import get_settings
from liquidity_sync.DI import Container
from liquidity_sync.events import TopicBus
from liquidity_sync.services import (
    FetchScheduler,
    OptimisticUpdateCoordinator,
    PoolDataService,
)

__version__ = "0.1.0"
__all__ = [
    "Container",
    "FetchScheduler",
    "OptimisticUpdateCoordinator",
    "PoolDataService",
    "TTLCacheStore",
    "TopicBus",
    "get_cache_store",
    "get_settings",
]
