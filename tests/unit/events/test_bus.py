# -*- coding: utf-8 -*-
"""Unit tests for TopicBus."""

from __future__ import annotations

import asyncio
import functools
from decimal import Decimal
from typing import Any

from bubus import EventBus  # type: ignore[import-untyped]

from liquidity_sync.events.bus import TopicBus, get_event_bus, set_event_bus
from liquidity_sync.events.topics import (
    PoolDataUpdatedEvent,
    PortfolioTotalUpdatedEvent,
    Topic,
    UserPositionUpdatedEvent,
)


def _pool_event(key: str = "pool_data_1") -> PoolDataUpdatedEvent:
    return PoolDataUpdatedEvent(key=key, old_value=None, new_value={"id": 1})


def test_emit_delivers_in_subscription_order(topic_bus: TopicBus) -> None:
    calls: list[str] = []
    topic_bus.on(Topic.POOL_DATA_UPDATED, lambda e: calls.append("first"))
    topic_bus.on(Topic.POOL_DATA_UPDATED, lambda e: calls.append("second"))
    topic_bus.on(Topic.USER_POSITION_UPDATED, lambda e: calls.append("other-topic"))

    topic_bus.emit(_pool_event())

    assert calls == ["first", "second"]


def test_topic_can_be_given_as_string_or_event_class(topic_bus: TopicBus) -> None:
    received: list[Any] = []
    topic_bus.on("pool-data-updated", received.append)
    topic_bus.on(PoolDataUpdatedEvent, received.append)

    topic_bus.emit(_pool_event())

    assert len(received) == 2
    assert topic_bus.subscriber_count(Topic.POOL_DATA_UPDATED) == 2


def test_wildcard_subscriber_receives_every_topic_after_topic_subscribers(topic_bus: TopicBus) -> None:
    calls: list[str] = []
    topic_bus.on("*", lambda e: calls.append(type(e).__name__))
    topic_bus.on(Topic.USER_POSITION_UPDATED, lambda e: calls.append("specific"))

    topic_bus.emit(UserPositionUpdatedEvent(key="user_position_a_b"))
    topic_bus.emit(
        PortfolioTotalUpdatedEvent(wallet="0xabc", total_value=Decimal("1"), positions_count=1)
    )

    assert calls == ["specific", "UserPositionUpdatedEvent", "PortfolioTotalUpdatedEvent"]


def test_unsubscribe_is_idempotent(topic_bus: TopicBus) -> None:
    received: list[Any] = []
    unsubscribe = topic_bus.on(Topic.POOL_DATA_UPDATED, received.append)

    unsubscribe()
    unsubscribe()
    topic_bus.emit(_pool_event())

    assert received == []
    assert topic_bus.subscriber_count(Topic.POOL_DATA_UPDATED) == 0


def test_unsubscribe_removes_only_its_own_registration(topic_bus: TopicBus) -> None:
    received: list[Any] = []
    first = topic_bus.on(Topic.POOL_DATA_UPDATED, received.append)
    topic_bus.on(Topic.POOL_DATA_UPDATED, received.append)

    first()
    first()
    topic_bus.emit(_pool_event())

    assert len(received) == 1


def test_any_callable_can_subscribe(topic_bus: TopicBus) -> None:
    tagged: list[tuple[str, Any]] = []
    received: list[Any] = []

    class Counter:
        def __init__(self) -> None:
            self.calls = 0

        def __call__(self, event: Any) -> None:
            self.calls += 1

    def _tag(label: str, event: Any) -> None:
        tagged.append((label, event.key))

    counter = Counter()
    unsubscribe_partial = topic_bus.on(Topic.POOL_DATA_UPDATED, functools.partial(_tag, "x"))
    unsubscribe_builtin = topic_bus.on(Topic.POOL_DATA_UPDATED, received.append)
    unsubscribe_object = topic_bus.on(Topic.POOL_DATA_UPDATED, counter)

    topic_bus.emit(_pool_event("pool_data_1"))

    assert tagged == [("x", "pool_data_1")]
    assert [e.key for e in received] == ["pool_data_1"]
    assert counter.calls == 1
    assert topic_bus.subscriber_count(Topic.POOL_DATA_UPDATED) == 3

    unsubscribe_partial()
    unsubscribe_builtin()
    unsubscribe_object()
    topic_bus.emit(_pool_event("pool_data_2"))

    assert len(tagged) == 1
    assert len(received) == 1
    assert counter.calls == 1
    assert topic_bus.subscriber_count(Topic.POOL_DATA_UPDATED) == 0


def test_subscriber_added_during_emit_does_not_receive_that_event(topic_bus: TopicBus) -> None:
    late: list[Any] = []

    def _subscribe_late(event: Any) -> None:
        topic_bus.on(Topic.POOL_DATA_UPDATED, late.append)

    topic_bus.on(Topic.POOL_DATA_UPDATED, _subscribe_late)

    topic_bus.emit(_pool_event("pool_data_1"))
    assert late == []

    topic_bus.emit(_pool_event("pool_data_2"))
    assert [e.key for e in late] == ["pool_data_2"]


def test_failing_subscriber_does_not_stop_delivery(topic_bus: TopicBus) -> None:
    received: list[Any] = []

    def _boom(event: Any) -> None:
        raise RuntimeError("boom")

    topic_bus.on(Topic.POOL_DATA_UPDATED, _boom)
    topic_bus.on(Topic.POOL_DATA_UPDATED, received.append)

    topic_bus.emit(_pool_event())

    assert len(received) == 1


def test_subscriptions_live_in_the_event_bus_handler_table(event_bus: EventBus) -> None:
    received: list[Any] = []

    def _handler(event: Any) -> None:
        received.append(event)

    event_bus.on(PoolDataUpdatedEvent, _handler)
    topic_bus = TopicBus(event_bus)

    topic_bus.emit(_pool_event())

    assert len(received) == 1
    assert topic_bus.event_bus is event_bus


async def test_async_subscriber_is_scheduled_on_running_loop(topic_bus: TopicBus) -> None:
    received: list[Any] = []

    async def _handler(event: Any) -> None:
        received.append(event)

    topic_bus.on(Topic.POOL_DATA_UPDATED, _handler)

    topic_bus.emit(_pool_event())
    assert received == []

    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert len(received) == 1


def test_async_subscriber_without_loop_is_dropped(topic_bus: TopicBus) -> None:
    async def _handler(event: Any) -> None:
        raise AssertionError("must not run")

    topic_bus.on(Topic.POOL_DATA_UPDATED, _handler)

    topic_bus.emit(_pool_event())


def test_get_event_bus_returns_singleton_until_reset() -> None:
    set_event_bus(None)
    try:
        first = get_event_bus()
        assert get_event_bus() is first

        replacement = EventBus(name="Replacement", max_history_size=10, wal_path=None)
        set_event_bus(replacement)
        assert get_event_bus() is replacement
    finally:
        set_event_bus(None)
