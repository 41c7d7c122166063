# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from decimal import Decimal
from typing import Any

import pytest
from bubus import EventBus  # type: ignore[import-untyped]

from liquidity_sync.cache.store import TTLCacheStore
from liquidity_sync.config import Settings
from liquidity_sync.events.bus import TopicBus
from liquidity_sync.events.topics import Topic
from liquidity_sync.models.pool import LiquidityPool, PoolStatus
from liquidity_sync.models.position import Position
from liquidity_sync.persistence.repositories.in_memory import (
    InMemoryKeyValueStore,
    InMemoryTransactionLedger,
)
from liquidity_sync.services.optimistic.windows import OptimisticWindowRegistry
from liquidity_sync.services.scheduler.fetch_scheduler import FetchScheduler


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def wallet() -> str:
    """Default wallet used by tests."""
    return "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"


@pytest.fixture
def contract_key() -> str:
    """Default pool contract key used by tests."""
    return "0x00000000000000000000000000000000000000a1"


@pytest.fixture
def D() -> Callable[[Any], Decimal]:
    """Decimal helper: D('1.23') -> Decimal('1.23')."""
    return lambda value: Decimal(str(value))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sync_overrides() -> dict[str, Any]:
    """Sync settings for tests: no debounce, timers far in the future unless a test shortens them."""
    return {
        "optimistic_window_seconds": 30.0,
        "auto_refresh_cooldown_seconds": 300.0,
        "freshness_window_seconds": 300.0,
        "debounce_seconds": 0.0,
        "confirm_refresh_delay_seconds": 3600.0,
        "state_file_path": None,
    }


@pytest.fixture
def settings(wallet: str, sync_overrides: dict[str, Any]) -> Settings:
    return Settings.from_env(
        sync=sync_overrides,
        cache={"maxsize": 128, "position_ttl_seconds": 300.0, "pool_ttl_seconds": 300.0},
        wallet={"address": wallet},
    )


@pytest.fixture
def event_bus() -> EventBus:
    """Isolated event bus instance for tests."""
    return EventBus(
        name="LiquiditySyncTests",
        max_history_size=200,
        wal_path=None,
    )


@pytest.fixture
def topic_bus(event_bus: EventBus) -> TopicBus:
    return TopicBus(event_bus)


@pytest.fixture
def record(topic_bus: TopicBus) -> Callable[[Topic | str], list[Any]]:
    """Subscribe a recorder to a topic and return the list it appends events to."""

    def _record(topic: Topic | str) -> list[Any]:
        received: list[Any] = []
        topic_bus.on(topic, received.append)
        return received

    return _record


@pytest.fixture
def cache(topic_bus: TopicBus, clock: FakeClock) -> TTLCacheStore:
    """Fresh cache store per test, publishing on the isolated bus."""
    return TTLCacheStore(topic_bus, maxsize=128, clock=clock)


@pytest.fixture
def ledger() -> InMemoryTransactionLedger:
    return InMemoryTransactionLedger()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def windows(settings: Settings, clock: FakeClock) -> Iterator[OptimisticWindowRegistry]:
    registry = OptimisticWindowRegistry(settings, clock=clock)
    yield registry
    registry.close()


@pytest.fixture
def scheduler(
    settings: Settings,
    windows: OptimisticWindowRegistry,
    kv_store: InMemoryKeyValueStore,
    topic_bus: TopicBus,
    clock: FakeClock,
) -> Iterator[FetchScheduler]:
    fetch_scheduler = FetchScheduler(settings, windows, store=kv_store, bus=topic_bus, clock=clock)
    yield fetch_scheduler
    fetch_scheduler.close()


@pytest.fixture
def pool_factory(contract_key: str, D: Callable[[Any], Decimal]) -> Callable[..., LiquidityPool]:
    """Build LiquidityPool with sensible defaults and easy overrides."""

    def _build(**overrides: Any) -> LiquidityPool:
        return LiquidityPool(
            id=overrides.pop("id", 1),
            name=overrides.pop("name", "Default Resistant Pool"),
            status=overrides.pop("status", PoolStatus.ACTIVE),
            contract_key=overrides.pop("contract_key", contract_key),
            apy=overrides.pop("apy", D("8.5")),
            total_value_locked=overrides.pop("total_value_locked", D("24500")),
            available_liquidity=overrides.pop("available_liquidity", D("18500")),
            token_a=overrides.pop("token_a", "USDC"),
            token_b=overrides.pop("token_b", "DFLP"),
            metadata=overrides.pop("metadata", {"symbol": "DFLP"}),
        )

    return _build


@pytest.fixture
def position_factory(
    pool_factory: Callable[..., LiquidityPool],
    D: Callable[[Any], Decimal],
) -> Callable[..., Position]:
    """Build Position from a pool with balance/current_value overrides."""

    def _build(**overrides: Any) -> Position:
        pool = overrides.pop("pool", None) or pool_factory()
        return Position.from_pool(
            pool,
            balance=overrides.pop("balance", D("50")),
            current_value=overrides.pop("current_value", D("500")),
        )

    return _build
