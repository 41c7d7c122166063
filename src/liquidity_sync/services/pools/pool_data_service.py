# -*- coding: utf-8 -*-
"""PoolDataService: the shared pool collection (fetch, sort, cache, lookup by contract)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

import structlog

from liquidity_sync.cache.keys import pool_data_key, pools_collection_key
from liquidity_sync.exceptions import PoolsUnavailableError
from liquidity_sync.models.pool import LiquidityPool
from liquidity_sync.services.scheduler.fetch_scheduler import CollectionSpec, RefreshOutcome
from liquidity_sync.utils.validation import normalize_key

if TYPE_CHECKING:
    from liquidity_sync.cache.store import TTLCacheStore
    from liquidity_sync.clients.pool_api import PoolApiClient
    from liquidity_sync.config import Settings
    from liquidity_sync.services.scheduler.fetch_scheduler import FetchScheduler

POOLS_COLLECTION = "pools"
POOLS_LAST_FETCHED_KEY = "pools_last_fetched_at"
NO_POOLS_ERROR = "No pools available at this time"


def sort_pools(pools: Sequence[LiquidityPool]) -> list[LiquidityPool]:
    """Order pools for display: warm-up, active, withdrawal, cooldown; then by id."""
    return sorted(pools, key=lambda p: (p.status.display_priority, p.id))


class PoolDataService:
    """Owns the "pools" collection.

    Registers it with the fetch scheduler (last-fetched instant persisted under
    pools_last_fetched_at), keeps the sorted list in memory and mirrors it into
    the cache (pool_data_all and pool_data_<id>) so a new consumer can reuse it
    without fetching.
    """

    def __init__(
        self,
        pool_api: "PoolApiClient",
        scheduler: "FetchScheduler",
        cache: "TTLCacheStore",
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the service and register the pools collection.

        Args:
            pool_api: Backend client (get_pools).
            scheduler: Fetch scheduler that guards pool refreshes.
            cache: Cache store mirrored on every successful fetch.
            settings: Application settings (uses settings.cache.pool_ttl_seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._api = pool_api
        self._scheduler = scheduler
        self._cache = cache
        self._ttl = settings.cache.pool_ttl_seconds
        self._pools: list[LiquidityPool] = []
        self._error: Optional[str] = None
        self._logger = get_logger(logger_name or self.__class__.__name__)
        scheduler.register(
            CollectionSpec(
                key=POOLS_COLLECTION,
                fetch=self._fetch,
                on_result=self._on_result,
                has_cached_data=self.has_cached_data,
                persist_key=POOLS_LAST_FETCHED_KEY,
            )
        )

    @property
    def pools(self) -> list[LiquidityPool]:
        """Sorted pools; falls back to the cached collection when memory is empty."""
        if self._pools:
            return list(self._pools)
        return self._pools_from_cache()

    @property
    def error(self) -> Optional[str]:
        """Message of the last failed refresh, None after a successful one."""
        return self._error

    @property
    def last_fetched_at(self) -> Optional[float]:
        return self._scheduler.state(POOLS_COLLECTION).last_fetched_at

    def has_cached_data(self) -> bool:
        return bool(self.pools)

    async def refresh(self, force: bool = False) -> RefreshOutcome:
        """Refresh the pool collection through the scheduler.

        Raises:
            CollectionRefreshError: If the fetch failed (previous pools are kept).
        """
        return await self._scheduler.refresh(POOLS_COLLECTION, force=force)

    async def list_pools(self) -> list[LiquidityPool]:
        """Return the pools, fetching first when none are known.

        The fetch is forced past freshness and suppression; a fetch already
        running is waited for instead of starting another.

        Raises:
            CollectionRefreshError: If the refresh failed.
            PoolsUnavailableError: If there are still no pools.
        """
        if not self.has_cached_data():
            outcome = await self.refresh(force=True)
            if outcome is RefreshOutcome.IN_FLIGHT:
                await self._scheduler.wait(POOLS_COLLECTION)
        pools = self.pools
        if not pools:
            raise PoolsUnavailableError(self._error or NO_POOLS_ERROR)
        return pools

    def get_pool_by_contract(self, contract_key: str) -> Optional[LiquidityPool]:
        """Pool metadata for a contract key (None if unknown)."""
        key = normalize_key(contract_key)
        for pool in self.pools:
            if pool.contract_key == key:
                return pool
        return None

    def invalidate(self) -> int:
        """Drop pools from memory and cache so the next refresh fetches. Returns evicted cache entries."""
        self._pools = []
        removed = self._cache.clear_pool_cache()
        self._logger.info("pool_data_invalidated", cache_removed_count=removed)
        return removed

    async def _fetch(self) -> list[LiquidityPool]:
        try:
            return await self._api.get_pools()
        except Exception as e:
            self._error = str(e) or type(e).__name__
            raise

    def _on_result(self, pools: list[LiquidityPool], fetch_started_at: float) -> None:
        if not pools:
            self._error = NO_POOLS_ERROR
            self._logger.warning("pool_data_empty", pools_kept_count=len(self._pools))
            return

        self._pools = sort_pools(pools)
        self._error = None
        self._cache.set(pools_collection_key(), [p.to_dict() for p in self._pools], ttl=self._ttl)
        for pool in self._pools:
            self._cache.set(pool_data_key(pool.id), pool.to_dict(), ttl=self._ttl)
        self._logger.info(
            "pool_data_updated",
            pools_count=len(self._pools),
            fetch_started_at=fetch_started_at,
        )

    def _pools_from_cache(self) -> list[LiquidityPool]:
        cached = self._cache.get(pools_collection_key())
        if not isinstance(cached, list):
            return []
        pools: list[LiquidityPool] = []
        for item in cached:
            if not isinstance(item, dict):
                continue
            try:
                pools.append(LiquidityPool.from_response(item))
            except ValueError as e:
                self._logger.debug("pool_data_cache_item_invalid", error=str(e))
        return pools
