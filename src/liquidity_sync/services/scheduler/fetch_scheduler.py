# -*- coding: utf-8 -*-
"""FetchScheduler: one in-flight fetch per collection, debounced, skipped while fresh or suppressed."""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from liquidity_sync.events.topics import CollectionFetchFailedEvent
from liquidity_sync.exceptions import CollectionRefreshError, UnknownCollectionError
from liquidity_sync.models.sync_state import FetchState

if TYPE_CHECKING:
    from liquidity_sync.config import Settings
    from liquidity_sync.events.bus import TopicBus
    from liquidity_sync.persistence.repositories.interfaces.key_value_store import IKeyValueStore
    from liquidity_sync.services.optimistic.windows import OptimisticWindowRegistry


class RefreshOutcome(str, Enum):
    """What a refresh() call did."""

    FETCHED = "fetched"
    FRESH = "fresh"
    """Skipped: fetched within the freshness window and cached data exists."""
    SUPPRESSED = "suppressed"
    """Skipped: automatic refresh is suppressed after a local mutation."""
    IN_FLIGHT = "in_flight"
    """Skipped: a fetch for the collection is already running."""


@dataclass(frozen=True, slots=True)
class CollectionSpec:
    """A logical collection the scheduler can refresh.

    fetch loads the whole collection. on_result(result, fetch_started_at)
    applies it (it may be a coroutine function). has_cached_data tells whether
    a fresh collection can be served without fetching. With persist_key set,
    last_fetched_at is kept in the durable store.
    """

    key: str
    fetch: Callable[[], Awaitable[Any]]
    on_result: Callable[[Any, float], Any]
    has_cached_data: Callable[[], bool]
    persist_key: Optional[str] = None


@dataclass(slots=True)
class _Collection:
    spec: CollectionSpec
    state: FetchState = field(default_factory=FetchState)
    pending: Optional[asyncio.Task[RefreshOutcome]] = None


class FetchScheduler:
    """Guards collection refreshes.

    refresh() decides, in order: already fetching (no-op), debounced fetch
    pending (join it), fresh with cached data (no-op), auto refresh suppressed
    (no-op), else schedule a fetch after sync.debounce_seconds. Calls arriving
    during the debounce share one fetch.
    """

    def __init__(
        self,
        settings: Settings,
        windows: OptimisticWindowRegistry,
        *,
        store: Optional[IKeyValueStore] = None,
        bus: Optional[TopicBus] = None,
        clock: Callable[[], float] = time.time,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            settings: Application settings (uses settings.sync).
            windows: Optimistic window registry (auto refresh suppression).
            store: Durable store for last_fetched_at of persisted collections.
            bus: Topic bus for collection-fetch-failed notifications.
            clock: Source of the current instant (seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._windows = windows
        self._store = store
        self._bus = bus
        self._clock = clock
        self._freshness_window = settings.sync.freshness_window_seconds
        self._debounce = settings.sync.debounce_seconds
        self._collections: dict[str, _Collection] = {}
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def register(self, spec: CollectionSpec) -> None:
        """Register (or replace) a collection. Loads its persisted last_fetched_at."""
        state = FetchState(last_fetched_at=self._load_last_fetched(spec))
        previous = self._collections.get(spec.key)
        if previous is not None and previous.pending is not None:
            previous.pending.cancel()
        self._collections[spec.key] = _Collection(spec=spec, state=state)
        self._logger.debug(
            "fetch_scheduler_registered",
            collection_key=spec.key,
            last_fetched_at=state.last_fetched_at,
        )

    def unregister(self, key: str) -> None:
        collection = self._collections.pop(key, None)
        if collection is not None and collection.pending is not None:
            collection.pending.cancel()

    def state(self, key: str) -> FetchState:
        """Fetch bookkeeping of the collection.

        Raises:
            UnknownCollectionError: If key was never registered.
        """
        return self._get(key).state

    async def refresh(self, key: str, force: bool = False) -> RefreshOutcome:
        """Refresh collection key unless a rule says the fetch is unnecessary.

        Args:
            key: Registered collection key.
            force: Skip the freshness and suppression checks (in-flight and
                debounce coalescing still apply).

        Returns:
            The RefreshOutcome of this call (joined calls share FETCHED).

        Raises:
            UnknownCollectionError: If key was never registered.
            CollectionRefreshError: If the fetch (or applying its result) failed.
        """
        collection = self._get(key)
        state = collection.state

        if state.is_fetching:
            self._log_skip(key, RefreshOutcome.IN_FLIGHT, force)
            return RefreshOutcome.IN_FLIGHT

        if collection.pending is not None and not collection.pending.done():
            self._logger.debug("fetch_scheduler_refresh_coalesced", collection_key=key, force=force)
            return await asyncio.shield(collection.pending)

        if not force:
            if state.is_fresh(self._clock(), self._freshness_window) and collection.spec.has_cached_data():
                self._log_skip(key, RefreshOutcome.FRESH, force)
                return RefreshOutcome.FRESH
            if self._windows.is_auto_refresh_suppressed():
                self._log_skip(key, RefreshOutcome.SUPPRESSED, force)
                return RefreshOutcome.SUPPRESSED

        task = asyncio.create_task(self._run(collection), name=f"refresh:{key}")
        task.add_done_callback(self._on_task_done)
        collection.pending = task
        return await asyncio.shield(task)

    async def wait(self, key: str) -> None:
        """Wait for the running or debounced fetch of key, if there is one.

        Raises:
            UnknownCollectionError: If key was never registered.
            CollectionRefreshError: If that fetch failed.
        """
        pending = self._get(key).pending
        if pending is not None and not pending.done():
            await asyncio.shield(pending)

    async def run_periodic(self, key: str, interval_seconds: float) -> None:
        """Issue a non-forced refresh of key every interval_seconds until cancelled.

        Refresh errors are logged; the loop keeps running.
        """
        self._get(key)
        self._logger.info(
            "fetch_scheduler_periodic_started",
            collection_key=key,
            interval_seconds=interval_seconds,
        )
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                outcome = await self.refresh(key)
            except CollectionRefreshError as e:
                self._logger.warning(
                    "fetch_scheduler_periodic_refresh_failed",
                    collection_key=key,
                    error=str(e),
                )
            else:
                self._logger.debug(
                    "fetch_scheduler_periodic_refresh",
                    collection_key=key,
                    outcome=outcome.value,
                )

    def close(self) -> None:
        """Cancel pending fetches of every collection."""
        for collection in self._collections.values():
            if collection.pending is not None and not collection.pending.done():
                collection.pending.cancel()

    def _get(self, key: str) -> _Collection:
        collection = self._collections.get(key)
        if collection is None:
            raise UnknownCollectionError(key)
        return collection

    async def _run(self, collection: _Collection) -> RefreshOutcome:
        spec = collection.spec
        state = collection.state
        with bound_contextvars(collection_key=spec.key):
            try:
                if self._debounce > 0:
                    await asyncio.sleep(self._debounce)
                started_at = self._clock()
                state.is_fetching = True
                self._logger.debug("fetch_scheduler_fetch_started", fetch_started_at=started_at)
                try:
                    result = await spec.fetch()
                    applied = spec.on_result(result, started_at)
                    if inspect.isawaitable(applied):
                        await applied
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    self._logger.warning(
                        "fetch_scheduler_fetch_failed",
                        error_type=type(e).__name__,
                        error=str(e),
                        last_fetched_at=state.last_fetched_at,
                    )
                    self._notify_failure(spec.key, e)
                    raise CollectionRefreshError(spec.key, cause=e) from e

                state.last_fetched_at = self._clock()
                self._persist_last_fetched(spec, state.last_fetched_at)
                self._logger.debug(
                    "fetch_scheduler_fetch_completed",
                    fetch_started_at=started_at,
                    last_fetched_at=state.last_fetched_at,
                )
                return RefreshOutcome.FETCHED
            finally:
                state.is_fetching = False
                if collection.pending is asyncio.current_task():
                    collection.pending = None

    def _on_task_done(self, task: asyncio.Task[RefreshOutcome]) -> None:
        # Retrieve the exception so a fetch nobody awaits any more is not reported as unhandled.
        if not task.cancelled():
            task.exception()

    def _notify_failure(self, key: str, error: Exception) -> None:
        if self._bus is None:
            return
        self._bus.emit(
            CollectionFetchFailedEvent(
                collection_key=key,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        )

    def _load_last_fetched(self, spec: CollectionSpec) -> Optional[float]:
        if spec.persist_key is None or self._store is None:
            return None
        value = self._store.get(spec.persist_key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def _persist_last_fetched(self, spec: CollectionSpec, value: float) -> None:
        if spec.persist_key is None or self._store is None:
            return
        try:
            self._store.set(spec.persist_key, value)
        except OSError as e:
            self._logger.warning(
                "fetch_scheduler_persist_failed",
                persist_key=spec.persist_key,
                error=str(e),
            )

    def _log_skip(self, key: str, outcome: RefreshOutcome, force: bool) -> None:
        self._logger.debug(
            "fetch_scheduler_refresh_skipped",
            collection_key=key,
            outcome=outcome.value,
            force=force,
        )
