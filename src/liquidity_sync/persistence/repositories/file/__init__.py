"""File-backed repository implementations."""

from liquidity_sync.persistence.repositories.file.key_value_store import JsonFileKeyValueStore

__all__ = ["JsonFileKeyValueStore"]
