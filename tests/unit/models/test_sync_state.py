# -*- coding: utf-8 -*-
"""Unit tests for synchronization bookkeeping models."""

from __future__ import annotations

import pytest

from liquidity_sync.models.sync_state import FetchState, ProcessedTransaction


def test_fetch_state_freshness() -> None:
    assert FetchState().is_fresh(100.0, 300.0) is False

    state = FetchState(last_fetched_at=100.0)

    assert state.is_fresh(399.0, 300.0) is True
    assert state.is_fresh(400.0, 300.0) is False


def test_processed_transaction_requires_id() -> None:
    record = ProcessedTransaction.create(" tx-1 ")

    assert record.transaction_id == "tx-1"
    assert record.processed_at.tzinfo is not None
    with pytest.raises(ValueError):
        ProcessedTransaction.create("")
