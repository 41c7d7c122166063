"""Abstract interface for the processed-transaction ledger (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ITransactionLedger(ABC):
    """Remembers which transaction notifications were already applied.

    Every subscriber of transaction-completed that mutates state checks and
    marks the transaction id here first, so a notification emitted by two
    producers is applied once.
    """

    @abstractmethod
    def has_processed(self, transaction_id: str) -> bool:
        """Return True if transaction_id has been marked processed."""
        ...

    @abstractmethod
    def mark_processed(self, transaction_id: str) -> None:
        """Record transaction_id as processed. Idempotent."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Forget every processed id (session end)."""
        ...

    @abstractmethod
    def __len__(self) -> int: ...

    def check_and_mark(self, transaction_id: str) -> bool:
        """Mark transaction_id processed. Returns True only the first time it is seen."""
        if self.has_processed(transaction_id):
            return False
        self.mark_processed(transaction_id)
        return True
