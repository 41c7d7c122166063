# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/ and file/."""

from liquidity_sync.persistence.repositories.interfaces.key_value_store import IKeyValueStore
from liquidity_sync.persistence.repositories.interfaces.transaction_ledger import (
    ITransactionLedger,
)

__all__ = ["IKeyValueStore", "ITransactionLedger"]
