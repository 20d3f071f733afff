"""
Application configuration using Pydantic Settings.
"""

import os
from datetime import timedelta
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from propvest.calculations.engine import EngineConfig
from propvest.calculations.penalty import UnmatchedTierPolicy
from propvest.calculations.rates import RateDefaults


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./dev.db"

    # App settings
    app_name: str = "PropVest Returns Engine"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Calculation engine
    # 31536000 = 365 days. Set to 3600 for the accelerated clock (1 hour = 1 year).
    year_length_seconds: int = 31536000
    unmatched_penalty_tier_policy: UnmatchedTierPolicy = UnmatchedTierPolicy.zero

    # Compiled rate fallbacks, used when neither property nor global settings
    # define a value. Set to "null" in the env file to disable a fallback.
    default_rental_yield_rate: Optional[Decimal] = Decimal("8")
    default_appreciation_rate: Optional[Decimal] = Decimal("3")
    default_penalty_rate: Optional[Decimal] = Decimal("5")
    default_maturity_years: Optional[Decimal] = Decimal("5")

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"
        env_parse_none_str = "null"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def engine_config_from_settings(settings: Settings) -> EngineConfig:
    """Build the engine's injected configuration."""
    return EngineConfig(
        year_length=timedelta(seconds=settings.year_length_seconds),
        unmatched_tier_policy=settings.unmatched_penalty_tier_policy,
    )


def rate_defaults_from_settings(settings: Settings) -> RateDefaults:
    return RateDefaults(
        rental_yield=settings.default_rental_yield_rate,
        appreciation=settings.default_appreciation_rate,
        penalty=settings.default_penalty_rate,
        maturity_years=settings.default_maturity_years,
    )
