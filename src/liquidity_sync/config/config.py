# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, SYNC__DEBOUNCE_SECONDS.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "liquidity-sync"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Log outputs (console, rotating file, Logfire) and their levels."""

    model_config = SettingsConfigDict(extra="ignore")

    console_level: LogLevel = "INFO"
    file_level: LogLevel = "INFO"
    logfire_level: LogLevel = "INFO"

    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/liquidity_sync.log"
    log_file_when: Literal["S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"] = Field(
        default="midnight",
        description="Rotation unit of the log file (TimedRotatingFileHandler 'when').",
    )
    log_file_interval: int = Field(default=1, ge=1)
    log_file_backup_count: int = Field(default=30, ge=0, description="Rotated files to keep.")
    log_file_utc: bool = True

    json_format: bool = Field(
        default=False,
        description="Render console output as JSON (file output is always JSON).",
    )

    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class ApiSettings(BaseSettings):
    """Configuration for the pools backend (HTTP)."""

    model_config = SettingsConfigDict(extra="ignore")

    backend_host: str = Field(
        default="http://localhost:8000",
        description="Pools backend base URL.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum number of attempts for failed requests.",
    )


class CacheSettings(BaseSettings):
    """In-memory TTL cache configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    maxsize: int = Field(
        default=4096,
        ge=1,
        description="Maximum number of entries before least-recently-used eviction.",
    )
    position_ttl_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="TTL for mirrored user positions.",
    )
    pool_ttl_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="TTL for cached pool data.",
    )


class SyncSettings(BaseSettings):
    """Optimistic update and fetch scheduling configuration (all durations in seconds)."""

    model_config = SettingsConfigDict(extra="ignore")

    optimistic_window_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="How long an entity stays optimistic after a local mutation.",
    )
    auto_refresh_cooldown_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Background refresh stays suppressed this long after the last optimistic window clears.",
    )
    freshness_window_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="A non-forced refresh within this window of the last fetch is skipped.",
    )
    debounce_seconds: float = Field(
        default=0.1,
        ge=0.0,
        description="Refresh calls arriving within this window are coalesced into one fetch.",
    )
    confirm_refresh_delay_seconds: float = Field(
        default=3.0,
        ge=0.0,
        description="Delay before the confirmatory re-fetch that follows a local mutation.",
    )
    default_lp_ratio: float = Field(
        default=0.95,
        gt=0.0,
        description="LP units per value unit when no exchange rate is known for a position.",
    )
    background_refresh_seconds: float = Field(
        default=300.0,
        ge=1.0,
        description="Interval of the periodic background refresh.",
    )
    state_file_path: Optional[str] = Field(
        default=".liquidity_sync_state.json",
        description="Durable store file for last-fetched timestamps. None keeps them in memory only.",
    )


class WalletSettings(BaseSettings):
    """Wallet whose positions are synchronized (env WALLET__ADDRESS)."""

    model_config = SettingsConfigDict(extra="ignore")

    address: str = Field(default="", description="0x wallet address.")


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, SYNC__FRESHNESS_WINDOW_SECONDS.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    wallet: WalletSettings = Field(default_factory=WalletSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.
        from_env(sync={"debounce_seconds": 0.0}).

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from liquidity_sync.config import get_settings

        settings = get_settings()
        window = settings.sync.optimistic_window_seconds
    """
    return Settings()
