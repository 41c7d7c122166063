"""In-memory repository implementations."""

from liquidity_sync.persistence.repositories.in_memory.key_value_store import (
    InMemoryKeyValueStore,
)
from liquidity_sync.persistence.repositories.in_memory.transaction_ledger import (
    InMemoryTransactionLedger,
)

__all__ = ["InMemoryKeyValueStore", "InMemoryTransactionLedger"]
