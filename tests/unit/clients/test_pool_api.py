# -*- coding: utf-8 -*-
"""Unit tests for PoolApiClient."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from liquidity_sync.clients.pool_api import PoolApiClient
from liquidity_sync.config import Settings
from liquidity_sync.exceptions import BackendAPIError
from liquidity_sync.models.pool import PoolStatus


def _client(settings: Settings, response: Any) -> tuple[PoolApiClient, AsyncMock]:
    http = AsyncMock()
    http.get = AsyncMock(return_value=response)
    return PoolApiClient(http_client=http, settings=settings), http


async def test_get_pools_unwraps_envelope_and_skips_invalid_items(settings: Settings) -> None:
    client, http = _client(
        settings,
        {
            "status": 200,
            "message": "ok",
            "data": [
                {"id": 1, "name": "A", "status": "active", "contract_address": "0xA1"},
                {"id": 2, "name": "B", "status": "unknown-status"},
                "not-a-dict",
                {"id": 3, "name": "C", "status": "cooldown"},
            ],
        },
    )

    pools = await client.get_pools()

    assert [p.id for p in pools] == [1, 3]
    assert pools[0].contract_key == "0xa1"
    assert pools[1].status is PoolStatus.COOLDOWN
    http.get.assert_awaited_once_with("http://localhost:8000/getPools", params=None)


async def test_get_pools_accepts_bare_list(settings: Settings) -> None:
    client, _ = _client(settings, [{"id": 1, "name": "A", "status": "active"}])

    assert len(await client.get_pools()) == 1


async def test_get_pools_non_list_returns_empty(settings: Settings) -> None:
    client, _ = _client(settings, {"status": 200, "data": {"unexpected": True}})

    assert await client.get_pools() == []


async def test_envelope_error_status_raises(settings: Settings) -> None:
    client, _ = _client(settings, {"status": 500, "message": "db down", "data": None})

    with pytest.raises(BackendAPIError) as exc_info:
        await client.get_pools()

    assert exc_info.value.status_code == 500
    assert "db down" in str(exc_info.value)


async def test_get_user_lp_balance(settings: Settings, wallet: str) -> None:
    client, http = _client(settings, {"status": 200, "data": {"balance": "12.5"}})

    balance = await client.get_user_lp_balance(wallet, "0xa1")

    assert balance == Decimal("12.5")
    http.get.assert_awaited_once_with(
        "http://localhost:8000/getUserLPBalance",
        params={"wallet": wallet, "contract": "0xa1"},
    )


async def test_preview_redeem(settings: Settings) -> None:
    client, http = _client(settings, {"status": 200, "data": {"assets": 125.75}})

    value = await client.preview_redeem(Decimal("12.5"), "0xa1")

    assert value == Decimal("125.75")
    http.get.assert_awaited_once_with(
        "http://localhost:8000/previewRedeem",
        params={"amount": "12.5", "contract": "0xa1"},
    )


async def test_scalar_payloads_are_accepted(settings: Settings, wallet: str) -> None:
    client, _ = _client(settings, {"status": 200, "data": "3"})

    assert await client.get_user_lp_balance(wallet, "0xa1") == Decimal("3")
