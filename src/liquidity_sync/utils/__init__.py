# -*- coding: utf-8 -*-
"""Utility modules."""

from liquidity_sync.utils.dedupe import generate_transaction_id
from liquidity_sync.utils.validation import is_hex_address, mask_address, normalize_key

__all__ = [
    "generate_transaction_id",
    "is_hex_address",
    "mask_address",
    "normalize_key",
]
