# -*- coding: utf-8 -*-
"""
Entry point for the liquidity-sync engine.

Orchestrates: logging, settings, container, initial pool and position refresh,
periodic background refreshes, shutdown (SIGINT or CancelledError).

Run with: python -m liquidity_sync.main

Notebook usage:
    from liquidity_sync.main import run
    await run()  # Interrupt kernel to stop; the engine shuts down on CancelledError.
"""
from __future__ import annotations

import asyncio
import signal
from typing import Any

import structlog

from liquidity_sync.DI import Container
from liquidity_sync.config import get_settings
from liquidity_sync.exceptions import LiquiditySyncError, MissingRequiredConfigError
from liquidity_sync.logging.config import configure_logging
from liquidity_sync.services.pools import POOLS_COLLECTION
from liquidity_sync.utils import is_hex_address, mask_address


def _setup_sigint(shutdown_event: asyncio.Event) -> None:
    try:
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(
            signal.SIGINT,
            lambda: shutdown_event.set(),
        )
    except NotImplementedError:
        pass  # Windows has no add_signal_handler


async def _initial_refresh(container: Container, logger: Any) -> None:
    """Load pools, then positions. Failures are logged; periodic refreshes retry."""
    pool_service = container.pool_data_service()
    coordinator = container.coordinator()
    try:
        await pool_service.refresh(force=True)
        await coordinator.refresh(force=True)
    except LiquiditySyncError as e:
        logger.warning(
            "main_initial_refresh_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
    logger.info(
        "main_initial_refresh_done",
        pools_count=len(pool_service.pools),
        positions_count=len(coordinator.positions),
        portfolio_total_value=str(coordinator.total_value),
    )


async def _do_shutdown(container: Container, tasks: list[asyncio.Task[Any]], logger: Any) -> None:
    """Clean shutdown. Safe to call on normal shutdown or CancelledError."""
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
    container.coordinator().close()
    container.fetch_scheduler().close()
    container.optimistic_windows().close()
    await container.http_client().aclose()
    container.transaction_ledger().clear()
    container.cache_store().clear()
    logger.info("main_shutdown_complete")


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()
    wallet = settings.wallet.address.strip()
    if not wallet:
        logger.error(
            "main_missing_wallet",
            message="WALLET__ADDRESS is not set",
        )
        raise MissingRequiredConfigError("WALLET__ADDRESS")
    if not is_hex_address(wallet):
        logger.warning("main_wallet_not_hex", wallet_masked=mask_address(wallet))

    container = Container()
    coordinator = container.coordinator()
    scheduler = container.fetch_scheduler()
    shutdown_event = asyncio.Event()
    _setup_sigint(shutdown_event)

    await _initial_refresh(container, logger)

    interval = settings.sync.background_refresh_seconds
    logger.info(
        "main_sync_started",
        wallet_masked=mask_address(wallet),
        background_refresh_seconds=interval,
    )
    tasks = [
        asyncio.create_task(scheduler.run_periodic(POOLS_COLLECTION, interval)),
        asyncio.create_task(scheduler.run_periodic(coordinator.collection_key, interval)),
    ]

    try:
        await shutdown_event.wait()
    finally:
        await _do_shutdown(container, tasks, logger)


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
