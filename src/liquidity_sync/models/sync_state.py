"""Synchronization bookkeeping: optimistic windows, fetch state, processed transactions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Optional


class EntityState(str, Enum):
    """Per-entity reconciliation state."""

    CLEAN = "clean"
    OPTIMISTIC_PENDING = "optimistic_pending"
    RECONCILED = "reconciled"
    """Authoritative data newer than the last local mutation replaced it."""


@dataclass(slots=True)
class OptimisticWindow:
    """Marks an entity as recently mutated locally.

    While active, fetches that started before last_mutation_at are discarded.
    """

    last_mutation_at: float
    active: bool = True


@dataclass(slots=True)
class FetchState:
    """Fetch bookkeeping for one logical collection (e.g. all pools)."""

    is_fetching: bool = False
    last_fetched_at: Optional[float] = None

    def is_fresh(self, now: float, freshness_window: float) -> bool:
        """True if the last successful fetch is younger than freshness_window."""
        if self.last_fetched_at is None:
            return False
        return now - self.last_fetched_at < freshness_window


@dataclass(frozen=True, slots=True)
class ProcessedTransaction:
    """Record that a transaction notification has been applied (for deduplication)."""

    transaction_id: str
    processed_at: datetime

    @classmethod
    def create(cls, transaction_id: str, *, processed_at: datetime | None = None) -> ProcessedTransaction:
        """Create a new record.

        Raises:
            ValueError: If transaction_id is empty.
        """
        transaction_id = transaction_id.strip()
        if not transaction_id:
            raise ValueError("transaction_id must be non-empty")
        return cls(transaction_id=transaction_id, processed_at=processed_at or datetime.now(UTC))
