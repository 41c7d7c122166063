"""Persistence layer (repositories, etc.)."""

from liquidity_sync.persistence.repositories import (
    IKeyValueStore,
    InMemoryKeyValueStore,
    InMemoryTransactionLedger,
    ITransactionLedger,
    JsonFileKeyValueStore,
)

__all__ = [
    "IKeyValueStore",
    "ITransactionLedger",
    "InMemoryKeyValueStore",
    "InMemoryTransactionLedger",
    "JsonFileKeyValueStore",
]
