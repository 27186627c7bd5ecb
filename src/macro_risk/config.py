"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # FRED API key (free registration at fred.stlouisfed.org)
    fred_api_key: str = ""

    # FRED base URL
    fred_api_url: str = "https://api.stlouisfed.org/fred"

    # Treasury Fiscal Data base URL
    treasury_api_url: str = "https://api.fiscaldata.treasury.gov/services/api/fiscal_service"

    # HTTP request timeout seconds
    http_timeout: float = 10.0

    # Max concurrent API requests
    max_concurrency: int = 6

    # How long fetched values and histories stay fresh
    cache_ttl_seconds: float = 30 * 60

    # Auto-refresh interval for `watch`
    refresh_interval_minutes: float = 30.0

    # Skip the network entirely and score the built-in fallback values
    use_mock_data: bool = False

    # Trend adjustment (False = pure threshold scoring)
    trend_enabled: bool = True

    # Number of monthly observations used for trend statistics
    trend_window: int = 12

    # Velocity (%/period) above which trend multipliers are amplified
    high_velocity_threshold: float = 2.0

    # |normalized slope| (% of mean per period) below which a trend is stable
    stable_slope_threshold: float = 0.5

    # Trend multiplier bounds
    multiplier_min: float = 0.5
    multiplier_max: float = 1.5

    # Correlation discount for exactly two / three-or-more triggered factors
    discount_two_factors: float = 0.7
    discount_many_factors: float = 0.5

    log_level: str = "WARNING"

    @field_validator("trend_window")
    @classmethod
    def _trend_window_usable(cls, v: int) -> int:
        if v < 3:
            raise ValueError(f"trend_window must be >= 3, got {v}")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def _max_concurrency_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {v}")
        return v

    @field_validator("high_velocity_threshold", "stable_slope_threshold")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"threshold must be >= 0, got {v}")
        return v

    @field_validator("discount_two_factors", "discount_many_factors")
    @classmethod
    def _discount_in_range(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"correlation discount must be in (0, 1], got {v}")
        return v

    @model_validator(mode="after")
    def _multiplier_bounds_bracket_one(self) -> Settings:
        if not 0.0 < self.multiplier_min <= 1.0 <= self.multiplier_max:
            raise ValueError(
                "multiplier bounds must satisfy 0 < multiplier_min <= 1 <= multiplier_max, "
                f"got [{self.multiplier_min}, {self.multiplier_max}]"
            )
        return self


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
