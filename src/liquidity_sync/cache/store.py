# -*- coding: utf-8 -*-
"""Process-wide TTL cache store with update events for pool and position keys."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from bubus import BaseEvent  # type: ignore[import-untyped]
from cachetools import TLRUCache

from liquidity_sync.cache.keys import (
    BORROWER_INFO_PREFIX,
    POOL_CACHE_PREFIXES,
    POOL_DATA_PREFIX,
    USER_POSITION_PREFIX,
)
from liquidity_sync.events.bus import TopicBus
from liquidity_sync.events.topics import PoolDataUpdatedEvent, UserPositionUpdatedEvent

_PREFIX_EVENTS: tuple[tuple[str, type[BaseEvent]], ...] = (
    (POOL_DATA_PREFIX, PoolDataUpdatedEvent),
    (BORROWER_INFO_PREFIX, PoolDataUpdatedEvent),
    (USER_POSITION_PREFIX, UserPositionUpdatedEvent),
)

_cache_store: TTLCacheStore | None = None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Stored value and its absolute expiration instant (None = never expires)."""

    value: Any
    expires_at: Optional[float] = None


def _time_to_use(_key: str, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at if entry.expires_at is not None else math.inf


class TTLCacheStore:
    """Keyed storage with optional per-entry TTL.

    Expired entries read as absent and are evicted by the read that finds them
    (no background sweep). Uses cachetools.TLRUCache, so memory stays bounded
    by maxsize (least recently used entries go first).

    Writes and deletes of pool_data_/borrower_info_ keys publish
    PoolDataUpdatedEvent and user_position_ keys UserPositionUpdatedEvent,
    with the old and new value.
    """

    def __init__(
        self,
        bus: Optional[TopicBus] = None,
        *,
        maxsize: int = 4096,
        clock: Callable[[], float] = time.time,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the store.

        Args:
            bus: Topic bus for update events. None disables publishing.
            maxsize: Maximum number of entries (LRU eviction beyond it).
            clock: Source of the current instant (seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._bus = bus
        self._clock = clock
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max(1, maxsize),
            ttu=_time_to_use,
            timer=clock,
        )
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for key; on a miss evict whatever has expired."""
        entry = self._entries.get(key)
        if entry is None:
            expired = self._entries.expire()
            if expired:
                self._logger.debug("cache_expired_evicted", cache_key=key, cache_evicted_count=len(expired))
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for key, or default if missing or expired."""
        entry = self._lookup(key)
        return default if entry is None else entry.value

    def exists(self, key: str) -> bool:
        """True if key holds an unexpired value. Does not touch the entry."""
        return key in self._entries

    def expires_at(self, key: str) -> Optional[float]:
        """Absolute expiration of key (None if missing or without TTL)."""
        entry = self._lookup(key)
        return None if entry is None else entry.expires_at

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key, overwriting unconditionally.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Seconds until expiry; None stores without expiry.
        """
        expires_at = None if ttl is None else self._clock() + ttl
        self._store(key, value, expires_at)

    def update(self, key: str, fn: Callable[[Any], Any], ttl: Optional[float] = None) -> Any:
        """Read-modify-write: store fn(current) and return it.

        current is None when the key is missing or expired. Without ttl the
        entry keeps its remaining lifetime. Runs without yielding, so no other
        write can land between the read and the write.
        """
        entry = self._lookup(key)
        new_value = fn(None if entry is None else entry.value)
        if ttl is not None:
            expires_at: Optional[float] = self._clock() + ttl
        else:
            expires_at = None if entry is None else entry.expires_at
        self._store(key, new_value, expires_at, previous=entry)
        return new_value

    def delete(self, key: str) -> bool:
        """Remove key. Returns False if it was missing or already expired."""
        entry = self._lookup(key)
        if entry is None:
            return False
        del self._entries[key]
        self._logger.debug("cache_deleted", cache_key=key)
        self._publish(key, entry.value, None, deleted=True)
        return True

    def clear_pool_cache(self) -> int:
        """Delete every pool_data_ and borrower_info_ entry. Returns the number removed."""
        removed = 0
        for key in list(self._entries.keys()):
            if key.startswith(POOL_CACHE_PREFIXES) and self.delete(key):
                removed += 1
        self._logger.debug("cache_pool_cache_cleared", cache_removed_count=removed)
        return removed

    def clear(self) -> None:
        """Drop every entry without publishing (session end)."""
        self._entries.clear()
        self._logger.debug("cache_cleared")

    def keys(self) -> list[str]:
        """Keys of unexpired entries."""
        self._entries.expire()
        return list(self._entries.keys())

    def _store(
        self,
        key: str,
        value: Any,
        expires_at: Optional[float],
        *,
        previous: Optional[CacheEntry] = None,
    ) -> None:
        if previous is None:
            previous = self._lookup(key)
        if expires_at is not None and expires_at <= self._clock():
            # Already expired: TLRUCache would ignore the write and keep the old entry.
            self._entries.pop(key, None)
        else:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        self._logger.debug(
            "cache_set",
            cache_key=key,
            cache_expires_at=expires_at,
        )
        self._publish(key, None if previous is None else previous.value, value, deleted=False)

    def _publish(self, key: str, old_value: Any, new_value: Any, *, deleted: bool) -> None:
        if self._bus is None:
            return
        for prefix, event_cls in _PREFIX_EVENTS:
            if key.startswith(prefix):
                self._bus.emit(event_cls(key=key, old_value=old_value, new_value=new_value, deleted=deleted))
                return


def get_cache_store() -> TTLCacheStore:
    """Return the process-wide cache store. Created on first call, publishing on the application bus."""
    global _cache_store
    if _cache_store is None:
        from liquidity_sync.config import get_settings

        _cache_store = TTLCacheStore(TopicBus(), maxsize=get_settings().cache.maxsize)
    return _cache_store


def set_cache_store(store: TTLCacheStore | None) -> None:
    """Set the cache store instance (e.g. for testing or DI). None resets to lazy default."""
    global _cache_store
    _cache_store = store
