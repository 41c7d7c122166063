# -*- coding: utf-8 -*-
"""Unit tests for validation helpers."""

from __future__ import annotations

from liquidity_sync.utils.validation import is_hex_address, mask_address, normalize_key


def test_is_hex_address(wallet: str) -> None:
    assert is_hex_address(wallet) is True
    assert is_hex_address(wallet[:-1]) is False
    assert is_hex_address("0x" + "g" * 40) is False
    assert is_hex_address(None) is False


def test_normalize_key() -> None:
    assert normalize_key("  0xAbC ") == "0xabc"


def test_mask_address(wallet: str) -> None:
    assert mask_address(wallet) == "0x2d27...7706"
    assert mask_address(None) == "***"
    assert mask_address("0x12") == "***"
