# -*- coding: utf-8 -*-
"""Pools backend client: pool list, LP balances and redeem previews."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, cast

import structlog
from structlog.contextvars import bound_contextvars

from liquidity_sync.clients.schema import LPBalanceSchema, PoolSchema, RedeemPreviewSchema
from liquidity_sync.config import Settings
from liquidity_sync.exceptions import BackendAPIError
from liquidity_sync.models.pool import LiquidityPool, to_decimal
from liquidity_sync.utils.validation import mask_address

if TYPE_CHECKING:
    from liquidity_sync.clients.http import AsyncHttpClient


class PoolApiClient:
    """Client for the pools backend (GET /getPools, /getUserLPBalance, /previewRedeem)."""

    def __init__(
        self,
        http_client: "AsyncHttpClient",
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Async HTTP client (e.g. AsyncHttpClient).
            settings: Application settings (uses settings.api.backend_host).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _url(self, path: str) -> str:
        return f"{self._settings.api.backend_host.rstrip('/')}/{path}"

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET path and unwrap the {status, message, data} envelope.

        Raises:
            BackendAPIError: If the envelope reports a non-2xx status.
        """
        url = self._url(path)
        body = await self._http.get(url, params=params)
        if not isinstance(body, dict) or "data" not in body:
            return body
        status = body.get("status")
        if isinstance(status, int) and not 200 <= status < 300:
            raise BackendAPIError(
                f"API error {status}: {body.get('message') or 'Unknown error'}",
                url=url,
                status_code=status,
            )
        return body["data"]

    async def get_pools(self) -> List[LiquidityPool]:
        """Fetch every pool. Malformed items are logged and skipped."""
        data = await self._request("getPools")
        if not isinstance(data, list):
            self._logger.warning(
                "pool_api_get_pools_non_list",
                pool_api_response_type=type(data).__name__,
            )
            return []
        pools: List[LiquidityPool] = []
        for item in cast(list[Any], data):
            if not isinstance(item, dict):
                continue
            try:
                pools.append(LiquidityPool.from_response(cast(PoolSchema, item)))  # type: ignore[arg-type]
            except ValueError as e:
                self._logger.warning(
                    "pool_api_pool_item_invalid",
                    pool_id=item.get("id"),
                    error=str(e),
                )
        return pools

    async def get_user_lp_balance(self, wallet: str, contract_key: str) -> Decimal:
        """Return the wallet's LP token balance in the pool (0 when unknown)."""
        with bound_contextvars(
            pool_api_wallet_masked=mask_address(wallet),
            pool_api_contract_key=contract_key,
        ):
            data = await self._request(
                "getUserLPBalance",
                {"wallet": wallet, "contract": contract_key},
            )
            if isinstance(data, dict):
                return to_decimal(cast(LPBalanceSchema, data).get("balance"))
            return to_decimal(data)

    async def preview_redeem(self, lp_amount: Decimal, contract_key: str) -> Decimal:
        """Return the value redeemable for lp_amount LP tokens of the pool."""
        with bound_contextvars(pool_api_contract_key=contract_key):
            data = await self._request(
                "previewRedeem",
                {"amount": str(lp_amount), "contract": contract_key},
            )
            if isinstance(data, dict):
                return to_decimal(cast(RedeemPreviewSchema, data).get("assets"))
            return to_decimal(data)
