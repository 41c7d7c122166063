# -*- coding: utf-8 -*-
"""Domain models."""

from liquidity_sync.models.pool import LiquidityPool, PoolStatus
from liquidity_sync.models.position import Position
from liquidity_sync.models.sync_state import (
    EntityState,
    FetchState,
    OptimisticWindow,
    ProcessedTransaction,
)

__all__ = [
    "EntityState",
    "FetchState",
    "LiquidityPool",
    "OptimisticWindow",
    "PoolStatus",
    "Position",
    "ProcessedTransaction",
]
