# -*- coding: utf-8 -*-
"""structlog + Logfire setup for the sync engine.

One call to configure_logging() at startup. Services never configure logging
themselves; they receive a logger factory (structlog.get_logger by default).
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Callable

import logfire
import structlog
from structlog.types import EventDict, Processor

from liquidity_sync.config import Settings, get_settings
from liquidity_sync.config.config import AppSettings, LoggingSettings

_LOGFIRE_LEVELS: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}

# Quiet at INFO unless something goes wrong.
_LIBRARY_LOGGERS: tuple[str, ...] = ("aiohttp", "asyncio", "bubus")

_PLAIN = logging.Formatter("%(message)s")


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _service_context(app: AppSettings) -> Callable[[Any, str, EventDict], EventDict]:
    """Processor stamping logger name and service identity on each event."""
    static: dict[str, Any] = {"app_name": app.app_name, "environment": app.environment}
    if app.service_name:
        static["service_name"] = app.service_name
    if app.service_version:
        static["service_version"] = app.service_version

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        wrapped = getattr(logger, "_logger", logger)
        event_dict.setdefault("logger", getattr(wrapped, "name", "") or "")
        event_dict.update(static)
        return event_dict

    return processor


def _console_handler(cfg: LoggingSettings) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(_level(cfg.console_level))
    handler.setFormatter(_PLAIN)
    return handler


def _file_handler(cfg: LoggingSettings) -> logging.Handler:
    path = Path(cfg.log_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        path,
        when=cfg.log_file_when,
        interval=cfg.log_file_interval,
        backupCount=cfg.log_file_backup_count,
        encoding="utf-8",
        utc=cfg.log_file_utc,
    )
    handler.setLevel(_level(cfg.file_level))
    handler.setFormatter(_PLAIN)
    return handler


def _renderer(cfg: LoggingSettings) -> Processor:
    # A log file is always JSON, so both outputs share one renderer.
    if cfg.log_to_file or cfg.json_format:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(settings: Settings | None = None) -> None:
    """Install stdlib handlers, the structlog processor chain and, if enabled, Logfire."""
    settings = settings or get_settings()
    cfg = settings.logging

    handlers: list[logging.Handler] = []
    if cfg.log_to_console:
        handlers.append(_console_handler(cfg))
    if cfg.log_to_file:
        handlers.append(_file_handler(cfg))
    if handlers:
        logging.basicConfig(level=min(h.level for h in handlers), handlers=handlers, force=True)
        for name in _LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(settings.app),
    ]
    if cfg.logfire_enabled:
        logfire.configure(
            token=cfg.logfire_token,
            service_name=settings.app.service_name or settings.app.app_name,
            service_version=settings.app.service_version,
            environment=settings.app.environment,
            min_level=_LOGFIRE_LEVELS[cfg.logfire_level],  # type: ignore[arg-type]
        )
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]
    if handlers:
        processors.append(_renderer(cfg))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
