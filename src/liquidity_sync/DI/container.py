# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

import time
from collections.abc import Callable

from dependency_injector import containers, providers

from liquidity_sync.cache.store import TTLCacheStore, set_cache_store
from liquidity_sync.clients.http import AsyncHttpClient
from liquidity_sync.clients.pool_api import PoolApiClient
from liquidity_sync.config import Settings, get_settings
from liquidity_sync.events.bus import TopicBus, get_event_bus
from liquidity_sync.persistence.repositories.file import JsonFileKeyValueStore
from liquidity_sync.persistence.repositories.in_memory import (
    InMemoryKeyValueStore,
    InMemoryTransactionLedger,
)
from liquidity_sync.persistence.repositories.interfaces import IKeyValueStore
from liquidity_sync.services.optimistic import (
    OptimisticUpdateCoordinator,
    OptimisticWindowRegistry,
    PositionFetcher,
)
from liquidity_sync.services.pools import PoolDataService
from liquidity_sync.services.scheduler import FetchScheduler


def _build_state_store(settings: Settings) -> IKeyValueStore:
    """Durable store at sync.state_file_path, or in memory when no path is set."""
    path = settings.sync.state_file_path
    if path:
        return JsonFileKeyValueStore(path)
    return InMemoryKeyValueStore()


def _build_cache_store(settings: Settings, bus: TopicBus, clock: Callable[[], float]) -> TTLCacheStore:
    """Build the cache store and install it as the process-wide instance."""
    store = TTLCacheStore(bus, maxsize=settings.cache.maxsize, clock=clock)
    set_cache_store(store)
    return store


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, bus, cache, ledger, clients, scheduler and coordinator."""

    config = providers.Callable(get_settings)

    clock = providers.Object(time.time)

    event_bus = providers.Callable(get_event_bus)

    topic_bus = providers.Singleton(
        TopicBus,
        event_bus=event_bus,
    )

    cache_store = providers.Singleton(_build_cache_store, config, topic_bus, clock)

    transaction_ledger = providers.Singleton(InMemoryTransactionLedger)

    state_store = providers.Singleton(_build_state_store, config)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    pool_api_client = providers.Singleton(
        PoolApiClient,
        http_client=http_client,
        settings=config,
    )

    optimistic_windows = providers.Singleton(
        OptimisticWindowRegistry,
        settings=config,
        clock=clock,
    )

    fetch_scheduler = providers.Singleton(
        FetchScheduler,
        settings=config,
        windows=optimistic_windows,
        store=state_store,
        bus=topic_bus,
        clock=clock,
    )

    pool_data_service = providers.Singleton(
        PoolDataService,
        pool_api=pool_api_client,
        scheduler=fetch_scheduler,
        cache=cache_store,
        settings=config,
    )

    position_fetcher = providers.Singleton(
        PositionFetcher,
        pool_api=pool_api_client,
        pool_service=pool_data_service,
    )

    coordinator = providers.Singleton(
        OptimisticUpdateCoordinator,
        wallet=config.provided.wallet.address,
        settings=config,
        cache=cache_store,
        bus=topic_bus,
        ledger=transaction_ledger,
        windows=optimistic_windows,
        scheduler=fetch_scheduler,
        pool_service=pool_data_service,
        position_fetcher=position_fetcher,
        clock=clock,
    )
