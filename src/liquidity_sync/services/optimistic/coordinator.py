# -*- coding: utf-8 -*-
"""OptimisticUpdateCoordinator: local mutations shown immediately, reconciled against fetches.

One coordinator per wallet. It owns the wallet's position collection (keyed by
pool contract key) and is the only sanctioned entry point for mutating it
(apply) and for refreshing it (refresh).

Ordering rule: a fetched snapshot whose fetch started before the entity's last
local mutation is discarded while the entity's optimistic window is active.
"""

from __future__ import annotations

import asyncio
import time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

import structlog

from liquidity_sync.cache.keys import user_position_key
from liquidity_sync.events.topics import (
    PortfolioTotalUpdatedEvent,
    Topic,
    TransactionCompletedEvent,
    TransactionKind,
)
from liquidity_sync.events.transactions import build_transaction_event
from liquidity_sync.models.position import Position
from liquidity_sync.models.sync_state import EntityState
from liquidity_sync.services.optimistic.position_fetcher import PositionFetchResult
from liquidity_sync.services.scheduler.fetch_scheduler import CollectionSpec, RefreshOutcome
from liquidity_sync.utils.validation import mask_address, normalize_key

if TYPE_CHECKING:
    from liquidity_sync.cache.store import TTLCacheStore
    from liquidity_sync.config import Settings
    from liquidity_sync.events.bus import TopicBus
    from liquidity_sync.persistence.repositories.interfaces.transaction_ledger import (
        ITransactionLedger,
    )
    from liquidity_sync.services.optimistic.position_fetcher import PositionFetcher
    from liquidity_sync.services.optimistic.windows import OptimisticWindowRegistry
    from liquidity_sync.services.pools.pool_data_service import PoolDataService
    from liquidity_sync.services.scheduler.fetch_scheduler import FetchScheduler

_ZERO = Decimal("0")


def positions_collection_key(wallet: str) -> str:
    """Scheduler collection key of a wallet's positions."""
    return f"positions:{normalize_key(wallet)}"


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class OptimisticUpdateCoordinator:
    """Optimistic position state of one wallet.

    apply() mutates a position synchronously, writes it through the cache,
    opens its optimistic window, publishes transaction-completed and
    portfolio-total-updated, and schedules a confirmatory refresh.
    reconcile() / reconcile_collection() replace local state with fetched
    snapshots, subject to the ordering rule.
    """

    def __init__(
        self,
        wallet: str,
        settings: "Settings",
        cache: "TTLCacheStore",
        bus: "TopicBus",
        ledger: "ITransactionLedger",
        windows: "OptimisticWindowRegistry",
        scheduler: "FetchScheduler",
        pool_service: "PoolDataService",
        position_fetcher: "PositionFetcher",
        *,
        clock: Callable[[], float] = time.time,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the coordinator, register the positions collection and subscribe to transactions.

        Args:
            wallet: 0x wallet address whose positions are tracked.
            settings: Application settings (cache TTL, sync delays, default LP ratio).
            cache: Cache store; positions are mirrored under user_position_<wallet>_<contract>.
            bus: Topic bus (transaction-completed in and out, portfolio-total-updated out).
            ledger: Processed-transaction ledger shared by every transaction subscriber.
            windows: Optimistic window registry shared with the scheduler.
            scheduler: Fetch scheduler guarding the positions refresh.
            pool_service: Pool metadata lookup (get_pool_by_contract).
            position_fetcher: Builds authoritative snapshots (fetch(wallet)).
            clock: Source of the current instant (seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._wallet = normalize_key(wallet)
        self._cache = cache
        self._bus = bus
        self._ledger = ledger
        self._windows = windows
        self._scheduler = scheduler
        self._pool_service = pool_service
        self._fetcher = position_fetcher
        self._clock = clock
        self._position_ttl = settings.cache.position_ttl_seconds
        self._confirm_delay = settings.sync.confirm_refresh_delay_seconds
        self._default_lp_ratio = Decimal(str(settings.sync.default_lp_ratio))
        self._logger = get_logger(logger_name or self.__class__.__name__).bind(
            wallet_masked=mask_address(self._wallet),
        )

        self._positions: dict[str, Position] = {}
        self._reconciled: set[str] = set()
        self._loaded = False
        self._last_updated: Optional[float] = None
        self._last_error: Optional[str] = None
        self._confirm_handle: Optional[asyncio.TimerHandle] = None
        self._confirm_tasks: set[asyncio.Task[RefreshOutcome]] = set()
        self._closed = False

        self.collection_key = positions_collection_key(self._wallet)
        scheduler.register(
            CollectionSpec(
                key=self.collection_key,
                fetch=self._fetch,
                on_result=self._on_fetch_result,
                has_cached_data=lambda: self._loaded,
            )
        )
        self._unsubscribe = bus.on(Topic.TRANSACTION_COMPLETED, self._on_transaction_completed)

    # --- Read side ---

    @property
    def wallet(self) -> str:
        return self._wallet

    @property
    def positions(self) -> list[Position]:
        """Positions with a non-zero balance, ordered by pool id."""
        return sorted(
            (p for p in self._positions.values() if p.has_balance),
            key=lambda p: p.pool_id,
        )

    @property
    def total_value(self) -> Decimal:
        """Sum of the current value of every position."""
        return sum((p.current_value for p in self._positions.values()), _ZERO)

    @property
    def has_positions(self) -> bool:
        return any(p.has_balance for p in self._positions.values())

    @property
    def last_updated(self) -> Optional[float]:
        return self._last_updated

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def get_position(self, contract_key: str) -> Optional[Position]:
        return self._positions.get(normalize_key(contract_key))

    def state_of(self, contract_key: str) -> EntityState:
        key = normalize_key(contract_key)
        if self._windows.is_active(self._entity_key(key)):
            return EntityState.OPTIMISTIC_PENDING
        if key in self._reconciled:
            return EntityState.RECONCILED
        return EntityState.CLEAN

    # --- Local mutations ---

    def apply(
        self,
        contract_key: str,
        amount: Decimal | int | float | str,
        is_withdrawal: bool = False,
        lp_amount_hint: Optional[Decimal] = None,
    ) -> Optional[Position]:
        """Apply a local supply (or withdrawal) to the position in contract_key's pool.

        Runs without yielding. Returns the updated position, or None when the
        mutation was a no-op (non-positive amount, withdrawal from a missing
        position, supply into an unknown pool).
        """
        key = normalize_key(contract_key)
        value = _as_decimal(amount)
        hint = None if lp_amount_hint is None else _as_decimal(lp_amount_hint)
        kind = TransactionKind.WITHDRAW if is_withdrawal else TransactionKind.SUPPLY

        position = self._mutate(key, value, is_withdrawal, hint)
        if position is None:
            return None

        event = build_transaction_event(kind, value, key, lp_amount=hint, clock=self._clock)
        if event.transaction_id is not None:
            self._ledger.mark_processed(event.transaction_id)
        self._logger.info(
            "coordinator_apply",
            kind=kind.value,
            contract_key=key,
            amount=str(value),
            transaction_id=event.transaction_id,
            balance=str(position.balance),
            current_value=str(position.current_value),
        )
        self._bus.emit(event)
        self._emit_total(event.transaction_id)
        self._schedule_confirm_refresh()
        return position

    def _on_transaction_completed(self, event: TransactionCompletedEvent) -> None:
        """Apply supply/withdraw notifications from other producers, at most once per transaction id."""
        if event.kind is TransactionKind.REPAY:
            return
        if event.transaction_id is not None and not self._ledger.check_and_mark(event.transaction_id):
            self._logger.debug("coordinator_transaction_duplicate", transaction_id=event.transaction_id)
            return
        position = self._mutate(
            normalize_key(event.contract_key),
            event.amount,
            event.kind is TransactionKind.WITHDRAW,
            event.lp_amount,
        )
        if position is None:
            return
        self._logger.info(
            "coordinator_transaction_applied",
            kind=event.kind.value,
            contract_key=position.contract_key,
            transaction_id=event.transaction_id,
        )
        self._emit_total(event.transaction_id)
        self._schedule_confirm_refresh()

    def _mutate(
        self,
        key: str,
        amount: Decimal,
        is_withdrawal: bool,
        lp_amount_hint: Optional[Decimal],
    ) -> Optional[Position]:
        if amount <= 0:
            self._logger.warning("coordinator_apply_non_positive_amount", contract_key=key, amount=str(amount))
            return None

        current = self._positions.get(key)
        if current is None:
            if is_withdrawal:
                self._logger.warning("coordinator_withdraw_missing_position", contract_key=key)
                return None
            pool = self._pool_service.get_pool_by_contract(key)
            if pool is None:
                self._logger.warning("coordinator_supply_unknown_pool", contract_key=key)
                return None
            current = Position.from_pool(pool)

        lp_delta = self._estimate_lp(current, amount, lp_amount_hint)
        if is_withdrawal:
            updated = current.with_amounts(current.balance - lp_delta, current.current_value - amount)
        else:
            updated = current.with_amounts(current.balance + lp_delta, current.current_value + amount)

        entity_key = self._entity_key(key)
        self._positions[key] = updated
        self._reconciled.discard(key)
        self._cache.set(entity_key, updated.to_cache_value(), ttl=self._position_ttl)
        self._windows.activate(entity_key)
        self._last_updated = self._clock()
        return updated

    def _estimate_lp(self, position: Position, amount: Decimal, lp_amount_hint: Optional[Decimal]) -> Decimal:
        """LP units corresponding to amount: hint, else the position's own ratio, else the default ratio."""
        if lp_amount_hint is not None and lp_amount_hint > 0:
            return lp_amount_hint
        if position.balance > 0 and position.current_value > 0:
            return amount * position.balance / position.current_value
        return amount * self._default_lp_ratio

    # --- Reconciliation ---

    def reconcile(self, contract_key: str, snapshot: Optional[Position], fetch_started_at: float) -> bool:
        """Replace local state of one position with a fetched snapshot (None = no position).

        Returns False when the snapshot was discarded because its fetch started
        before the last local mutation of a still-optimistic position.
        """
        key = normalize_key(contract_key)
        entity_key = self._entity_key(key)
        pending = self._windows.is_active(entity_key)
        if pending:
            last_mutation_at = self._windows.last_mutation_at(entity_key)
            if last_mutation_at is not None and fetch_started_at < last_mutation_at:
                self._logger.info(
                    "coordinator_stale_snapshot_discarded",
                    contract_key=key,
                    fetch_started_at=fetch_started_at,
                    last_mutation_at=last_mutation_at,
                )
                return False

        if snapshot is None:
            if self._positions.pop(key, None) is not None:
                self._cache.delete(entity_key)
        else:
            self._positions[key] = snapshot
            self._cache.set(entity_key, snapshot.to_cache_value(), ttl=self._position_ttl)

        if pending:
            self._windows.deactivate(entity_key)
            self._reconciled.add(key)
        return True

    def reconcile_collection(
        self,
        snapshots: Iterable[Position],
        fetch_started_at: float,
        *,
        skip_keys: Iterable[str] = (),
    ) -> int:
        """Reconcile every local and fetched position. Returns how many snapshots were applied.

        Keys in skip_keys (pools whose balance could not be read) keep their local state.
        """
        previous_total = self.total_value
        fetched = {normalize_key(p.contract_key): p for p in snapshots}
        skipped = {normalize_key(k) for k in skip_keys}
        applied = 0
        for key in sorted(set(self._positions) | set(fetched)):
            if key in skipped:
                continue
            if self.reconcile(key, fetched.get(key), fetch_started_at):
                applied += 1

        self._loaded = True
        self._last_updated = self._clock()
        self._last_error = None
        self._logger.debug(
            "coordinator_reconciled",
            positions_fetched=len(fetched),
            positions_applied=applied,
            positions_skipped=len(skipped),
        )
        if self.total_value != previous_total:
            self._emit_total(None)
        return applied

    async def refresh(self, force: bool = False) -> RefreshOutcome:
        """Refresh positions through the fetch scheduler.

        Raises:
            CollectionRefreshError: If the fetch failed (local state is kept).
        """
        return await self._scheduler.refresh(self.collection_key, force=force)

    async def _fetch(self) -> PositionFetchResult:
        try:
            return await self._fetcher.fetch(self._wallet)
        except Exception as e:
            self._last_error = str(e) or type(e).__name__
            raise

    def _on_fetch_result(self, result: PositionFetchResult, fetch_started_at: float) -> None:
        self.reconcile_collection(
            result.positions,
            fetch_started_at,
            skip_keys=result.failed_contract_keys,
        )

    # --- Helpers ---

    def _entity_key(self, contract_key: str) -> str:
        return user_position_key(self._wallet, contract_key)

    def _emit_total(self, transaction_id: Optional[str]) -> None:
        self._bus.emit(
            PortfolioTotalUpdatedEvent(
                wallet=self._wallet,
                total_value=self.total_value,
                positions_count=len(self.positions),
                transaction_id=transaction_id,
            )
        )

    def _schedule_confirm_refresh(self) -> None:
        """(Re)schedule the forced refresh that confirms the latest local mutation."""
        if self._closed:
            return
        if self._confirm_handle is not None:
            self._confirm_handle.cancel()
            self._confirm_handle = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning("coordinator_confirm_refresh_no_loop")
            return
        self._confirm_handle = loop.call_later(self._confirm_delay, self._start_confirm_refresh)

    def _start_confirm_refresh(self) -> None:
        self._confirm_handle = None
        task = asyncio.create_task(self.refresh(force=True))
        self._confirm_tasks.add(task)
        task.add_done_callback(self._on_confirm_done)

    def _on_confirm_done(self, task: asyncio.Task[RefreshOutcome]) -> None:
        self._confirm_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.warning(
                "coordinator_confirm_refresh_failed",
                error_type=type(error).__name__,
                error=str(error),
            )
            return
        outcome = task.result()
        if outcome is RefreshOutcome.IN_FLIGHT:
            # That fetch started before the mutation; its result cannot confirm it.
            self._logger.debug("coordinator_confirm_refresh_deferred")
            self._schedule_confirm_refresh()
            return
        self._logger.debug("coordinator_confirm_refresh_done", outcome=outcome.value)

    def close(self) -> None:
        """Unsubscribe, cancel the pending confirmatory refresh and drop the positions collection."""
        self._closed = True
        self._unsubscribe()
        if self._confirm_handle is not None:
            self._confirm_handle.cancel()
            self._confirm_handle = None
        for task in list(self._confirm_tasks):
            task.cancel()
        self._scheduler.unregister(self.collection_key)
