"""Abstract interface for a durable key-value store (survives restarts)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IKeyValueStore(ABC):
    """Small durable store for JSON-serializable values (e.g. last-fetched timestamps)."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or default if missing."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...
