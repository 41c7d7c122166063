# -*- coding: utf-8 -*-
"""JSON-file key-value store: survives restarts, used for last-fetched timestamps."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import structlog

from liquidity_sync.persistence.repositories.interfaces.key_value_store import IKeyValueStore


class JsonFileKeyValueStore(IKeyValueStore):
    """File-backed implementation of IKeyValueStore.

    The whole mapping is kept in memory and rewritten on every change (write to
    a temp file, then atomic replace). A missing or unreadable file starts empty.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._path = Path(path)
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._logger.warning(
                "kv_store_load_failed",
                kv_store_path=str(self._path),
                error_type=type(e).__name__,
                error=str(e),
            )
            return {}
        if not isinstance(raw, dict):
            self._logger.warning("kv_store_load_non_object", kv_store_path=str(self._path))
            return {}
        return raw

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(json.dumps(self._data, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()
