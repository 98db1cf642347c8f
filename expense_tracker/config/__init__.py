"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    PaymentSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PaymentSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
