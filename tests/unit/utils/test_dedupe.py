# -*- coding: utf-8 -*-
"""Unit tests for transaction id helpers."""

from __future__ import annotations

import re

from liquidity_sync.utils.dedupe import generate_transaction_id


def test_generate_transaction_id_format() -> None:
    tid = generate_transaction_id(1_700_000_000.123)

    assert re.fullmatch(r"tx-1700000000123-[0-9a-z]{7}", tid)


def test_generated_ids_differ() -> None:
    assert generate_transaction_id(1.0) != generate_transaction_id(1.0)
