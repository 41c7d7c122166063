# -*- coding: utf-8 -*-
"""Position: one wallet's stake in one pool.

Identity within a wallet is the pool contract key. balance is in LP units,
current_value in the pool's value unit (USDC). Both are never negative.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from liquidity_sync.models.pool import PoolStatus

if TYPE_CHECKING:
    from liquidity_sync.models.pool import LiquidityPool

_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Position:
    """User position in a pool (LP balance and its current value)."""

    pool_id: int
    contract_key: str
    pool_name: str
    symbol: str
    balance: Decimal
    """LP units held."""
    current_value: Decimal
    """Redeemable value of balance."""
    status: PoolStatus = PoolStatus.ACTIVE
    apy: Decimal = _ZERO

    def __post_init__(self) -> None:
        # Overshooting withdrawals and bad backend data clamp to zero.
        if self.balance < 0:
            object.__setattr__(self, "balance", _ZERO)
        if self.current_value < 0:
            object.__setattr__(self, "current_value", _ZERO)

    @property
    def has_balance(self) -> bool:
        return self.balance > 0

    def with_amounts(self, balance: Decimal, current_value: Decimal) -> Position:
        """Return a copy with new balance and value (clamped at zero)."""
        return replace(self, balance=balance, current_value=current_value)

    def to_cache_value(self) -> dict[str, Any]:
        """Mirror stored in the TTL cache under the wallet/pool key."""
        return {"balance": self.balance, "current_value": self.current_value}

    @classmethod
    def from_pool(
        cls,
        pool: LiquidityPool,
        *,
        balance: Decimal = _ZERO,
        current_value: Decimal = _ZERO,
    ) -> Position:
        """Create a position carrying the pool's metadata (name, symbol, status, apy).

        Raises:
            ValueError: If the pool has no contract key.
        """
        if not pool.contract_key:
            raise ValueError(f"pool {pool.id} has no contract key")
        return cls(
            pool_id=pool.id,
            contract_key=pool.contract_key,
            pool_name=pool.name,
            symbol=pool.symbol,
            balance=balance,
            current_value=current_value,
            status=pool.status,
            apy=pool.apy,
        )
