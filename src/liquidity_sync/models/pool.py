# -*- coding: utf-8 -*-
"""Liquidity pool: one lending pool as returned by the pools backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from liquidity_sync.utils.validation import normalize_key


class PoolStatus(str, Enum):
    """Pool lifecycle phase."""

    WARM_UP = "warm-up"
    ACTIVE = "active"
    COOLDOWN = "cooldown"
    WITHDRAWAL = "withdrawal"

    @property
    def display_priority(self) -> int:
        """Sort rank for pool lists: warm-up, active, withdrawal, cooldown."""
        return _STATUS_PRIORITY[self]


_STATUS_PRIORITY: dict[PoolStatus, int] = {
    PoolStatus.WARM_UP: 1,
    PoolStatus.ACTIVE: 2,
    PoolStatus.WITHDRAWAL: 3,
    PoolStatus.COOLDOWN: 4,
}


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Convert a JSON number or numeric string to Decimal; default on failure."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


@dataclass(frozen=True, slots=True)
class LiquidityPool:
    """Pool metadata and liquidity figures.

    contract_key is None for pools not yet deployed on-chain; such pools never
    hold user positions.
    """

    id: int
    name: str
    status: PoolStatus
    contract_key: Optional[str] = None
    apy: Decimal = Decimal("0")
    total_value_locked: Decimal = Decimal("0")
    available_liquidity: Decimal = Decimal("0")
    token_a: str = ""
    token_b: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def symbol(self) -> str:
        """LP token symbol from metadata, "LP" when not set."""
        symbol = self.metadata.get("symbol")
        return symbol if isinstance(symbol, str) and symbol else "LP"

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> LiquidityPool:
        """Build from a backend pool item.

        Raises:
            ValueError: If id, name or status is missing or invalid.
        """
        try:
            pool_id = int(data["id"])
            name = str(data["name"])
            status = PoolStatus(data["status"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid pool item: {e}") from e

        contract = data.get("contract_address") or data.get("contract_key")
        metadata = data.get("metadata")
        return cls(
            id=pool_id,
            name=name,
            status=status,
            contract_key=normalize_key(contract) if isinstance(contract, str) and contract.strip() else None,
            apy=to_decimal(data.get("apy")),
            total_value_locked=to_decimal(data.get("total_value_locked")),
            available_liquidity=to_decimal(data.get("available_liquidity")),
            token_a=str(data.get("token_a") or ""),
            token_b=str(data.get("token_b") or ""),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain representation stored in the cache."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "contract_address": self.contract_key,
            "apy": str(self.apy),
            "total_value_locked": str(self.total_value_locked),
            "available_liquidity": str(self.available_liquidity),
            "token_a": self.token_a,
            "token_b": self.token_b,
            "metadata": dict(self.metadata),
        }
