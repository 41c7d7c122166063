"""Validation helpers for wallet addresses and pool contract keys."""

from __future__ import annotations

from typing import Any


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x address (42 chars)."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if len(s) != 42 or not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def normalize_key(value: str) -> str:
    """Strip surrounding whitespace and lowercase an address-like key.

    Contract keys and wallets are compared case-insensitively (checksummed and
    lowercase forms refer to the same contract).
    """
    return value.strip().lower()


def mask_address(addr: str | None) -> str:
    """Return a masked wallet address for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
