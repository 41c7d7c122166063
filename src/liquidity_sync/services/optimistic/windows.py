# -*- coding: utf-8 -*-
"""Optimistic windows: which entities were mutated locally, and when auto refresh may run again."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional

import structlog

from liquidity_sync.models.sync_state import OptimisticWindow

if TYPE_CHECKING:
    from liquidity_sync.config import Settings


class OptimisticWindowRegistry:
    """Per-entity optimistic windows plus the process-wide auto refresh boundary.

    activate() opens (or re-opens) the window of an entity and schedules its
    expiry after sync.optimistic_window_seconds. A later activate() for the
    same entity replaces the pending expiry. A closed window (expiry or
    deactivate) is dropped from the registry. Whenever the last open window
    closes, automatic refresh stays suppressed for a further
    sync.auto_refresh_cooldown_seconds.

    Shared by the coordinator (which opens windows and checks them during
    reconciliation) and the fetch scheduler (which skips non-forced refreshes
    while suppressed).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        clock: Callable[[], float] = time.time,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            settings: Application settings (uses settings.sync).
            clock: Source of the current instant (seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._window_seconds = settings.sync.optimistic_window_seconds
        self._cooldown_seconds = settings.sync.auto_refresh_cooldown_seconds
        self._clock = clock
        self._windows: dict[str, OptimisticWindow] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._suppressed_until: float = float("-inf")
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def auto_refresh_suppressed_until(self) -> float:
        return self._suppressed_until

    def activate(self, key: str) -> OptimisticWindow:
        """Open the window for key at the current instant and (re)schedule its expiry."""
        now = self._clock()
        window = OptimisticWindow(last_mutation_at=now)
        self._windows[key] = window
        self._extend_suppression(now + self._window_seconds)
        self._cancel_timer(key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning("optimistic_window_no_loop", entity_key=key)
        else:
            self._timers[key] = loop.call_later(self._window_seconds, self._expire, key, window)
        self._logger.debug(
            "optimistic_window_activated",
            entity_key=key,
            last_mutation_at=now,
            auto_refresh_suppressed_until=self._suppressed_until,
        )
        return window

    def deactivate(self, key: str) -> bool:
        """Close the window for key. Returns False if it was not active."""
        window = self._windows.pop(key, None)
        self._cancel_timer(key)
        if window is None or not window.active:
            return False
        window.active = False
        self._logger.debug("optimistic_window_deactivated", entity_key=key)
        self._on_window_closed()
        return True

    def is_active(self, key: str) -> bool:
        window = self._windows.get(key)
        return window is not None and window.active

    def last_mutation_at(self, key: str) -> Optional[float]:
        """Instant of the last local mutation of key while its window is open, else None."""
        window = self._windows.get(key)
        return None if window is None else window.last_mutation_at

    def active_keys(self) -> list[str]:
        return list(self._windows)

    def is_auto_refresh_suppressed(self) -> bool:
        """True while non-forced refreshes must be skipped."""
        return self._clock() < self._suppressed_until

    def close(self) -> None:
        """Cancel every pending expiry and forget all windows."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._windows.clear()

    def _expire(self, key: str, window: OptimisticWindow) -> None:
        self._timers.pop(key, None)
        if self._windows.get(key) is not window or not window.active:
            # Superseded by a later activate, or already reconciled.
            return
        del self._windows[key]
        window.active = False
        self._logger.debug("optimistic_window_expired", entity_key=key)
        self._on_window_closed()

    def _on_window_closed(self) -> None:
        if self._windows:
            return
        self._extend_suppression(self._clock() + self._cooldown_seconds)
        self._logger.info(
            "optimistic_windows_drained",
            auto_refresh_suppressed_until=self._suppressed_until,
        )

    def _extend_suppression(self, until: float) -> None:
        if until > self._suppressed_until:
            self._suppressed_until = until

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()
