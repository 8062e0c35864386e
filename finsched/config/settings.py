"""
Configuration Management for the Scheduler

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every setting has a usable default so a schedule book works without any
environment at all.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from finsched.models.schedule import RecurrenceUnit


class SchedulingSettings(BaseSettings):
    """Posting behavior of schedule books."""

    model_config = SettingsConfigDict(
        env_prefix="FINSCHED_SCHEDULING_",
        extra="ignore"
    )

    transactional_posting: bool = Field(
        default=False,
        description=(
            "When True, an occurrence the ledger refuses is kept on the "
            "schedule instead of being skipped"
        )
    )
    default_repeat_unit: RecurrenceUnit = Field(
        default=RecurrenceUnit.MONTH,
        description="Repeat unit used when a schedule is created without one"
    )
    auto_activate: bool = Field(
        default=True,
        description="Activate schedules created through a schedule book"
    )


class StorageSettings(BaseSettings):
    """File storage of schedule books."""

    model_config = SettingsConfigDict(
        env_prefix="FINSCHED_STORAGE_",
        extra="ignore"
    )

    directory: Path = Field(
        default=Path.home() / ".finsched",
        description="Directory holding saved schedule books"
    )
    filename: str = Field(
        default="schedules.fsd",
        min_length=1,
        description="File name of the saved schedule book"
    )
    compress: bool = Field(
        default=True,
        description="Deflate-compress saved schedule books"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for each file read or write"
    )

    @field_validator('directory')
    @classmethod
    def expand_directory(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def path(self) -> Path:
        return self.directory / self.filename


class AuditSettings(BaseSettings):
    """Audit trail configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINSCHED_AUDIT_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Record audit events for schedule books"
    )
    max_events: int = Field(
        default=10000,
        ge=1,
        description="Events kept by the in-memory audit storage"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def scheduling(self) -> SchedulingSettings:
        return SchedulingSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def audit(self) -> AuditSettings:
        return AuditSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<setting_name>_error" entry for each invalid one.
    """
    results = {}

    settings = get_settings()

    for section in ("scheduling", "storage", "audit", "app"):
        try:
            getattr(settings, section)
            results[section] = True
        except Exception as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
