# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, file)."""

from liquidity_sync.persistence.repositories.file import JsonFileKeyValueStore
from liquidity_sync.persistence.repositories.in_memory import (
    InMemoryKeyValueStore,
    InMemoryTransactionLedger,
)
from liquidity_sync.persistence.repositories.interfaces import (
    IKeyValueStore,
    ITransactionLedger,
)

__all__ = [
    "IKeyValueStore",
    "ITransactionLedger",
    "InMemoryKeyValueStore",
    "InMemoryTransactionLedger",
    "JsonFileKeyValueStore",
]
