"""Cache key layout. Prefixes decide which topic a write is announced on."""

from __future__ import annotations

from liquidity_sync.utils.validation import normalize_key

POOL_DATA_PREFIX = "pool_data_"
BORROWER_INFO_PREFIX = "borrower_info_"
USER_POSITION_PREFIX = "user_position_"

POOL_CACHE_PREFIXES: tuple[str, ...] = (POOL_DATA_PREFIX, BORROWER_INFO_PREFIX)


def pool_data_key(pool_id: int) -> str:
    return f"{POOL_DATA_PREFIX}{pool_id}"


def pools_collection_key() -> str:
    """Key of the full, sorted pool list."""
    return f"{POOL_DATA_PREFIX}all"


def borrower_info_key(contract_key: str) -> str:
    return f"{BORROWER_INFO_PREFIX}{normalize_key(contract_key)}"


def user_position_key(wallet: str, contract_key: str) -> str:
    """Key of one wallet's position mirror in one pool."""
    return f"{USER_POSITION_PREFIX}{normalize_key(wallet)}_{normalize_key(contract_key)}"
