"""Clients for the pools backend."""

from liquidity_sync.clients.http import AsyncHttpClient
from liquidity_sync.clients.pool_api import PoolApiClient

__all__ = ["AsyncHttpClient", "PoolApiClient"]
