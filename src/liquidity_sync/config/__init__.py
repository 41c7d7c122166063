"""Configuration subpackage."""

from liquidity_sync.config.config import (
    ApiSettings,
    AppSettings,
    CacheSettings,
    LoggingSettings,
    Settings,
    SyncSettings,
    WalletSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "SyncSettings",
    "WalletSettings",
    "get_settings",
]
