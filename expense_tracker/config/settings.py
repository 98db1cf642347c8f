"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, validation thresholds and payment defaults are
validated once at startup instead of being scattered through the code.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Key-value backend: 'file' for durable storage, 'memory' for demos"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one file per storage key"
    )
    ledger_key: str = Field(
        default="expenses",
        min_length=1,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Storage key the whole ledger is serialized under"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Expand '~' so the directory can be configured relative to home."""
        return Path(v).expanduser()


class PaymentSettings(BaseSettings):
    """UPI payment handoff configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAYMENT_",
        extra="ignore"
    )

    currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="Currency code written into payment links"
    )
    default_payee_name: str = Field(
        default="Merchant",
        description="Payee name used when a scanned code does not carry one"
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

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG level instead of INFO"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        description="Symbol shown next to amounts (the ledger stores bare numbers)"
    )
    recent_expenses_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many expenses the dashboard lists as recent"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amount above which a form submission gets a warning"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an expense date can be"
    )

    # Caller-side retry for failed writes
    submit_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made by the UI flows when a storage write fails"
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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def payment(self) -> PaymentSettings:
        return PaymentSettings()

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

    Returns a dict of {setting_name: is_valid}, with an extra
    '<name>_error' entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "payment", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
