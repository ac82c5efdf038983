"""Configuration package."""

from financeai.config.settings import (
    SUPPORTED_LANGUAGES,
    AppSettings,
    ChatSettings,
    LedgerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SUPPORTED_LANGUAGES",
    "AppSettings",
    "ChatSettings",
    "LedgerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
