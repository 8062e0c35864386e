"""Configuration package."""

from finsched.config.settings import (
    AppSettings,
    AuditSettings,
    SchedulingSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuditSettings",
    "SchedulingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
