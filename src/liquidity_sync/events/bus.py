"""Application event bus (bubus) and the synchronous topic dispatcher built on its handler table."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any, Optional

import structlog
from bubus import BaseEvent, EventBus  # type: ignore[import-untyped]

from liquidity_sync.events.topics import TOPIC_EVENTS, Topic

_event_bus: EventBus | None = None

WILDCARD = "*"

TopicCallback = Callable[[Any], Any]
Unsubscribe = Callable[[], None]

_TOPIC_BY_EVENT_NAME: dict[str, str] = {cls.__name__: topic.value for topic, cls in TOPIC_EVENTS.items()}


def get_event_bus() -> EventBus:
    """Return the application event bus singleton. Created on first call."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus(
            name="LiquiditySync",
            max_history_size=100,
            wal_path=None,
        )
    return _event_bus


def set_event_bus(bus: EventBus | None) -> None:
    """Set the event bus instance (e.g. for testing or DI). None resets to lazy default."""
    global _event_bus
    _event_bus = bus


def _handler_key(topic: Topic | type[BaseEvent] | str) -> str:
    """Key used in the bus handler table: event class name, or "*" for every topic."""
    if isinstance(topic, Topic):
        return TOPIC_EVENTS[topic].__name__
    if isinstance(topic, str):
        if topic == WILDCARD:
            return WILDCARD
        return TOPIC_EVENTS[Topic(topic)].__name__
    return topic.__name__


class TopicBus:
    """Synchronous publish/subscribe over the bubus EventBus handler table.

    emit() calls every callback registered for the event's topic (then wildcard
    callbacks) in subscription order, before returning. Callbacks registered
    while an emit is running do not see that event. Nothing is persisted or
    replayed to late subscribers.
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            event_bus: bubus bus whose handler table holds the subscriptions
                (defaults to the application singleton).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._bus = event_bus if event_bus is not None else get_event_bus()
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    def on(self, topic: Topic | type[BaseEvent] | str, callback: TopicCallback) -> Unsubscribe:
        """Subscribe callback to topic. Returns an idempotent unsubscribe function.

        callback may be any callable (bound builtin, functools.partial, object
        with __call__); bubus only accepts plain functions, so the handler
        table holds a function forwarding to it.
        """
        key = _handler_key(topic)

        def handler(event: Any) -> Any:
            return callback(event)

        label = getattr(callback, "__qualname__", None) or type(callback).__qualname__
        handler.__qualname__ = label
        # bubus warns about two handlers with the same name under one key.
        handler.__name__ = f"{label}_{id(handler):x}"
        self._bus.on(key, handler)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            handlers = self._bus.handlers.get(key)
            if not handlers:
                return
            for index, registered in enumerate(handlers):
                if registered is handler:
                    del handlers[index]
                    return

        return unsubscribe

    def subscriber_count(self, topic: Topic | type[BaseEvent] | str) -> int:
        return len(self._bus.handlers.get(_handler_key(topic), ()))

    def emit(self, event: BaseEvent) -> None:
        """Deliver event to the current subscribers of its topic, in subscription order."""
        key = type(event).__name__
        handlers = self._bus.handlers
        callbacks = [*handlers.get(key, ()), *handlers.get(WILDCARD, ())]
        topic = _TOPIC_BY_EVENT_NAME.get(key, key)
        for callback in callbacks:
            try:
                result = callback(event)
            except Exception as e:
                self._logger.exception(
                    "topic_bus_handler_error",
                    topic=topic,
                    handler=getattr(callback, "__qualname__", repr(callback)),
                    error=str(e),
                )
                continue
            if inspect.isawaitable(result):
                self._schedule(result, topic)

    def _schedule(self, awaitable: Any, topic: str) -> None:
        """Run an async callback's awaitable on the running loop (fire-and-forget)."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._logger.warning("topic_bus_async_handler_without_loop", topic=topic)
            return
        future = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(future)
        future.add_done_callback(self._on_task_done)

    def _on_task_done(self, future: asyncio.Future[Any]) -> None:
        self._tasks.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.error(
                "topic_bus_async_handler_error",
                error_type=type(error).__name__,
                error=str(error),
            )
