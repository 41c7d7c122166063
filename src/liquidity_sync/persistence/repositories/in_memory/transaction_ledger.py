# -*- coding: utf-8 -*-
"""In-memory processed-transaction ledger (unbounded, lives for the session)."""

from __future__ import annotations

from liquidity_sync.models.sync_state import ProcessedTransaction
from liquidity_sync.persistence.repositories.interfaces.transaction_ledger import (
    ITransactionLedger,
)


class InMemoryTransactionLedger(ITransactionLedger):
    """In-memory implementation of ITransactionLedger."""

    def __init__(self) -> None:
        """Initialize an empty ledger."""
        self._store: dict[str, ProcessedTransaction] = {}

    def __len__(self) -> int:
        return len(self._store)

    def has_processed(self, transaction_id: str) -> bool:
        """Return True if transaction_id has been marked processed."""
        return transaction_id.strip() in self._store

    def mark_processed(self, transaction_id: str) -> None:
        """Record transaction_id. Re-marking keeps the first record."""
        record = ProcessedTransaction.create(transaction_id)
        self._store.setdefault(record.transaction_id, record)

    def get(self, transaction_id: str) -> ProcessedTransaction | None:
        """Return the record for transaction_id, or None."""
        return self._store.get(transaction_id.strip())

    def clear(self) -> None:
        self._store.clear()
