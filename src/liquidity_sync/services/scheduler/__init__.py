"""Fetch scheduling for logical collections (pools, positions)."""

from liquidity_sync.services.scheduler.fetch_scheduler import (
    CollectionSpec,
    FetchScheduler,
    RefreshOutcome,
)

__all__ = ["CollectionSpec", "FetchScheduler", "RefreshOutcome"]
