"""Topic events (bubus BaseEvent). One event class per topic, each with a fixed payload shape."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from bubus import BaseEvent  # type: ignore[import-untyped]


class Topic(str, Enum):
    """Well-known topics of the synchronization engine."""

    POOL_DATA_UPDATED = "pool-data-updated"
    USER_POSITION_UPDATED = "user-position-updated"
    TRANSACTION_COMPLETED = "transaction-completed"
    PORTFOLIO_TOTAL_UPDATED = "portfolio-total-updated"
    COLLECTION_FETCH_FAILED = "collection-fetch-failed"


class TransactionKind(str, Enum):
    """Kind of user transaction announced on transaction-completed."""

    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    REPAY = "repay"


class PoolDataUpdatedEvent(BaseEvent[None]):
    """Emitted by the cache store when a pool_data_/borrower_info_ key is written or deleted."""

    key: str
    old_value: Any = None
    new_value: Any = None
    deleted: bool = False


class UserPositionUpdatedEvent(BaseEvent[None]):
    """Emitted by the cache store when a user_position_ key is written or deleted."""

    key: str
    old_value: Any = None
    new_value: Any = None
    deleted: bool = False


class TransactionCompletedEvent(BaseEvent[None]):
    """A user transaction finished (or was applied optimistically).

    transaction_id is the idempotence key: every subscriber that mutates state
    checks it against the transaction ledger before applying.
    """

    transaction_id: Optional[str] = None
    kind: TransactionKind
    amount: Decimal
    lp_amount: Optional[Decimal] = None
    contract_key: str
    occurred_at: float
    is_user_action: bool = True
    affects_portfolio_total: bool = False


class PortfolioTotalUpdatedEvent(BaseEvent[None]):
    """Emitted when the total value of the wallet's positions changes."""

    wallet: str
    total_value: Decimal
    positions_count: int
    transaction_id: Optional[str] = None


class CollectionFetchFailedEvent(BaseEvent[None]):
    """Non-fatal notification for the view layer: a refresh failed, last good data is kept."""

    collection_key: str
    error_type: str
    error_message: str


TOPIC_EVENTS: dict[Topic, type[BaseEvent]] = {
    Topic.POOL_DATA_UPDATED: PoolDataUpdatedEvent,
    Topic.USER_POSITION_UPDATED: UserPositionUpdatedEvent,
    Topic.TRANSACTION_COMPLETED: TransactionCompletedEvent,
    Topic.PORTFOLIO_TOTAL_UPDATED: PortfolioTotalUpdatedEvent,
    Topic.COLLECTION_FETCH_FAILED: CollectionFetchFailedEvent,
}
