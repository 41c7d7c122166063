# -*- coding: utf-8 -*-
"""Event bus and topic event types."""

from liquidity_sync.events.bus import TopicBus, get_event_bus, set_event_bus
from liquidity_sync.events.topics import (
    CollectionFetchFailedEvent,
    PoolDataUpdatedEvent,
    PortfolioTotalUpdatedEvent,
    Topic,
    TransactionCompletedEvent,
    TransactionKind,
    UserPositionUpdatedEvent,
)
from liquidity_sync.events.transactions import build_transaction_event

__all__ = [
    "CollectionFetchFailedEvent",
    "PoolDataUpdatedEvent",
    "PortfolioTotalUpdatedEvent",
    "Topic",
    "TopicBus",
    "TransactionCompletedEvent",
    "TransactionKind",
    "UserPositionUpdatedEvent",
    "build_transaction_event",
    "get_event_bus",
    "set_event_bus",
]
