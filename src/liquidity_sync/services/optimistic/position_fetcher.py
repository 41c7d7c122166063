# -*- coding: utf-8 -*-
"""Builds authoritative position snapshots for one wallet from the pools backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog
from structlog.contextvars import bound_contextvars

from liquidity_sync.models.position import Position
from liquidity_sync.utils.validation import mask_address

if TYPE_CHECKING:
    from liquidity_sync.clients.pool_api import PoolApiClient
    from liquidity_sync.services.pools.pool_data_service import PoolDataService


@dataclass(frozen=True, slots=True)
class PositionFetchResult:
    """Snapshots of every pool where the wallet holds LP tokens.

    failed_contract_keys lists pools whose balance could not be read; their
    local state is left as is.
    """

    positions: tuple[Position, ...] = ()
    failed_contract_keys: frozenset[str] = field(default_factory=frozenset)


class PositionFetcher:
    """Fetches LP balance and redeemable value of a wallet in every deployed pool."""

    def __init__(
        self,
        pool_api: "PoolApiClient",
        pool_service: "PoolDataService",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            pool_api: Backend client (get_user_lp_balance, preview_redeem).
            pool_service: Pool collection (list_pools).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._api = pool_api
        self._pools = pool_service
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def fetch(self, wallet: str) -> PositionFetchResult:
        """Return the wallet's positions.

        Pools without a contract key are skipped, as are zero balances. A
        failure for one pool is logged and only that pool is skipped.

        Raises:
            CollectionRefreshError: If the pool refresh failed.
            PoolsUnavailableError: If no pools are known.
        """
        positions: list[Position] = []
        failed: set[str] = set()
        with bound_contextvars(wallet_masked=mask_address(wallet)):
            pools = await self._pools.list_pools()
            for pool in pools:
                if not pool.contract_key:
                    continue
                try:
                    balance = await self._api.get_user_lp_balance(wallet, pool.contract_key)
                    if balance <= 0:
                        continue
                    value = await self._api.preview_redeem(balance, pool.contract_key)
                except Exception as e:
                    failed.add(pool.contract_key)
                    self._logger.warning(
                        "position_fetch_pool_failed",
                        pool_id=pool.id,
                        contract_key=pool.contract_key,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    continue
                positions.append(Position.from_pool(pool, balance=balance, current_value=value))

            self._logger.debug(
                "position_fetch_completed",
                positions_count=len(positions),
                pools_count=len(pools),
                failed_pools_count=len(failed),
            )
        return PositionFetchResult(positions=tuple(positions), failed_contract_keys=frozenset(failed))
