"""Pools backend response types. Keys match the API response (snake_case)."""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar, TypedDict

T = TypeVar("T")


class BackendEnvelope(TypedDict, Generic[T], total=False):
    """Wrapper around every backend payload: {status, message, data}."""

    status: int
    message: str
    data: T


class PoolSchema(TypedDict, total=False):
    """GET /getPools item."""

    id: int
    name: str
    status: Literal["warm-up", "active", "cooldown", "withdrawal"]
    contract_address: str
    token_a: str
    token_b: str
    token_a_amount: float
    token_b_amount: float
    apy: float
    total_value_locked: float
    available_liquidity: float
    created_at: str
    updated_at: str
    metadata: dict[str, Any]


class LPBalanceSchema(TypedDict, total=False):
    """GET /getUserLPBalance payload."""

    balance: str | float


class RedeemPreviewSchema(TypedDict, total=False):
    """GET /previewRedeem payload: value of the given LP amount."""

    assets: str | float
