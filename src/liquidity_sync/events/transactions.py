"""Helpers for publishing transaction-completed notifications."""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Callable, Optional

from liquidity_sync.events.topics import TransactionCompletedEvent, TransactionKind
from liquidity_sync.utils.dedupe import generate_transaction_id
from liquidity_sync.utils.validation import normalize_key


def build_transaction_event(
    kind: TransactionKind,
    amount: Decimal,
    contract_key: str,
    *,
    lp_amount: Optional[Decimal] = None,
    transaction_id: Optional[str] = None,
    is_user_action: bool = True,
    clock: Callable[[], float] = time.time,
) -> TransactionCompletedEvent:
    """Build a TransactionCompletedEvent with id, timestamp and portfolio flag filled in.

    Supply and withdraw always carry a transaction id and affect the portfolio
    total; repay carries one only when given.
    """
    now = clock()
    affects_total = kind in (TransactionKind.SUPPLY, TransactionKind.WITHDRAW)
    if transaction_id is None and affects_total:
        transaction_id = generate_transaction_id(now)
    return TransactionCompletedEvent(
        transaction_id=transaction_id,
        kind=kind,
        amount=amount,
        lp_amount=lp_amount,
        contract_key=normalize_key(contract_key),
        occurred_at=now,
        is_user_action=is_user_action,
        affects_portfolio_total=affects_total,
    )
