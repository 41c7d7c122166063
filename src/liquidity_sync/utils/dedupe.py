"""Transaction identifiers for idempotent delivery of transaction notifications."""

from __future__ import annotations

import secrets
import string
import time

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_transaction_id(now: float | None = None) -> str:
    """Return a new transaction id: tx-<epoch millis>-<7 random base36 chars>."""
    millis = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"tx-{millis}-{suffix}"
