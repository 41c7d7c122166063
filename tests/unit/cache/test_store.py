# -*- coding: utf-8 -*-
"""Unit tests for TTLCacheStore."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from liquidity_sync.cache.keys import (
    borrower_info_key,
    pool_data_key,
    pools_collection_key,
    user_position_key,
)
from liquidity_sync.cache.store import TTLCacheStore
from liquidity_sync.events.topics import PoolDataUpdatedEvent, Topic, UserPositionUpdatedEvent

from tests.conftest import FakeClock


def test_value_is_readable_until_ttl_elapses(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("k", "v", ttl=1)

    assert cache.get("k") == "v"
    assert cache.exists("k") is True

    clock.advance(1)

    assert cache.get("k") is None
    assert cache.exists("k") is False


def test_get_evicts_expired_entry(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=50)
    clock.advance(10)

    assert cache.get("short", "absent") == "absent"
    assert cache.keys() == ["long"]
    assert len(cache) == 1


def test_exists_does_not_evict(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("k", "v", ttl=5)
    clock.advance(4)

    assert cache.exists("k") is True
    assert cache.expires_at("k") == clock.now + 1


def test_entry_without_ttl_never_expires(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("k", "v")
    clock.advance(10**9)

    assert cache.get("k") == "v"
    assert cache.expires_at("k") is None


def test_set_overwrites_unconditionally(cache: TTLCacheStore) -> None:
    cache.set("k", 1, ttl=10)
    cache.set("k", 2)

    assert cache.get("k") == 2
    assert cache.expires_at("k") is None


def test_set_with_non_positive_ttl_leaves_key_absent(cache: TTLCacheStore) -> None:
    cache.set("k", 1)
    cache.set("k", 2, ttl=0)

    assert cache.get("k") is None


def test_update_passes_none_for_missing_key(cache: TTLCacheStore) -> None:
    seen: list[Any] = []

    def _fn(current: Any) -> int:
        seen.append(current)
        return 1

    assert cache.update("counter", _fn) == 1
    assert seen == [None]
    assert cache.get("counter") == 1


def test_update_keeps_remaining_lifetime_without_ttl(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("counter", 1, ttl=10)
    clock.advance(4)

    cache.update("counter", lambda current: current + 1)

    assert cache.get("counter") == 2
    assert cache.expires_at("counter") == clock.now + 6


def test_update_with_ttl_resets_lifetime(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("counter", 1, ttl=10)
    clock.advance(4)

    cache.update("counter", lambda current: current + 1, ttl=100)

    assert cache.expires_at("counter") == clock.now + 100


def test_update_treats_expired_value_as_missing(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("counter", 41, ttl=1)
    clock.advance(2)

    assert cache.update("counter", lambda current: 0 if current is None else current + 1) == 0


def test_delete_reports_whether_key_was_present(cache: TTLCacheStore, clock: FakeClock) -> None:
    cache.set("a", 1)
    cache.set("b", 2, ttl=1)
    clock.advance(1)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.delete("b") is False
    assert cache.delete("never") is False


def test_pool_keys_publish_pool_data_updated(
    cache: TTLCacheStore,
    record: Callable[[Topic | str], list[Any]],
) -> None:
    events = record(Topic.POOL_DATA_UPDATED)
    position_events = record(Topic.USER_POSITION_UPDATED)

    cache.set(pool_data_key(1), {"name": "A"})
    cache.set(pool_data_key(1), {"name": "B"})
    cache.set(borrower_info_key("0xABC"), {"score": 1})

    assert [type(e) for e in events] == [PoolDataUpdatedEvent] * 3
    assert events[0].old_value is None
    assert events[1].old_value == {"name": "A"}
    assert events[1].new_value == {"name": "B"}
    assert events[2].key == "borrower_info_0xabc"
    assert position_events == []


def test_user_position_keys_publish_user_position_updated(
    cache: TTLCacheStore,
    record: Callable[[Topic | str], list[Any]],
    wallet: str,
    contract_key: str,
) -> None:
    events = record(Topic.USER_POSITION_UPDATED)
    key = user_position_key(wallet, contract_key)

    cache.set(key, {"balance": 1}, ttl=60)
    cache.update(key, lambda current: {**current, "balance": 2})
    cache.delete(key)

    assert [type(e) for e in events] == [UserPositionUpdatedEvent] * 3
    assert events[1].old_value == {"balance": 1}
    assert events[1].new_value == {"balance": 2}
    assert events[2].deleted is True
    assert events[2].new_value is None
    assert events[2].old_value == {"balance": 2}


def test_unrecognized_keys_publish_nothing(
    cache: TTLCacheStore,
    record: Callable[[Topic | str], list[Any]],
) -> None:
    events = record("*")

    cache.set("session_token", "abc")
    cache.delete("session_token")

    assert events == []


def test_clear_pool_cache_removes_only_pool_prefixes(
    cache: TTLCacheStore,
    record: Callable[[Topic | str], list[Any]],
    wallet: str,
    contract_key: str,
) -> None:
    position_key = user_position_key(wallet, contract_key)
    cache.set(pools_collection_key(), [])
    cache.set(pool_data_key(7), {})
    cache.set(borrower_info_key("0x1"), {})
    cache.set(position_key, {})
    events = record(Topic.POOL_DATA_UPDATED)

    removed = cache.clear_pool_cache()

    assert removed == 3
    assert cache.keys() == [position_key]
    assert len(events) == 3
    assert all(e.deleted for e in events)


def test_clear_removes_everything_silently(
    cache: TTLCacheStore,
    record: Callable[[Topic | str], list[Any]],
) -> None:
    cache.set(pool_data_key(1), {})
    cache.set("other", 1)
    events = record("*")

    cache.clear()

    assert len(cache) == 0
    assert events == []


def test_maxsize_bounds_entry_count(clock: FakeClock) -> None:
    cache = TTLCacheStore(maxsize=2, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("c") == 3


def test_store_without_bus_does_not_publish(clock: FakeClock) -> None:
    cache = TTLCacheStore(clock=clock)

    cache.set(pool_data_key(1), {"name": "A"})

    assert cache.get(pool_data_key(1)) == {"name": "A"}
