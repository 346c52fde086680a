"""
Configuration Management for the Obligation Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Every policy constant the engine relies on lives here.
The month-length multipliers, the suggestion window and the financing
threshold are approximations, so they are settings rather than literals
buried in the calculations.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Engine-wide tunables.

    Loads configuration from OBLIGATION_ENGINE_* environment variables
    and an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="OBLIGATION_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Frequency normalization (approximate month lengths)
    daily_multiplier: Decimal = Field(
        default=Decimal("30"),
        gt=0,
        description="Days counted per month for daily amounts"
    )
    weekly_multiplier: Decimal = Field(
        default=Decimal("4.33"),
        gt=0,
        description="Weeks counted per month for weekly amounts"
    )
    biweekly_multiplier: Decimal = Field(
        default=Decimal("2.17"),
        gt=0,
        description="Fortnights counted per month for biweekly amounts"
    )

    # Recurrence policy
    suggestion_window: int = Field(
        default=3,
        ge=1,
        le=24,
        description="How many recent instances are averaged for a suggested amount"
    )
    default_reminder_days: int = Field(
        default=3,
        ge=0,
        le=31,
        description="Days ahead a pending obligation counts as due soon"
    )
    default_snooze_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Snooze length when the caller does not pick one"
    )

    # Valuation policy
    financing_threshold_pct: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Real savings (%) required before installments are recommended"
    )
    default_monthly_inflation_pct: Decimal = Field(
        default=Decimal("2.0"),
        description="Monthly inflation assumed by forward projections"
    )
    use_parallel_rate: bool = Field(
        default=True,
        description="Use the parallel USD rate instead of the official one"
    )

    # Budgets
    budget_warning_pct: Decimal = Field(
        default=Decimal("80"),
        gt=0,
        le=100,
        description="Spent percentage above which a budget line is flagged"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for engine logs"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> EngineSettings:
    """
    Get engine settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return EngineSettings()
