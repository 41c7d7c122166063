"""Dependency injection."""

from liquidity_sync.DI.container import Container

__all__ = ["Container"]
