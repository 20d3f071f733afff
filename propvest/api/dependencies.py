"""
FastAPI dependencies for the calculation engine.
"""

from datetime import datetime

from propvest.calculations.engine import EngineConfig
from propvest.calculations.rates import RateDefaults
from propvest.config import (
    get_settings,
    engine_config_from_settings,
    rate_defaults_from_settings,
)


def get_engine_config() -> EngineConfig:
    """Engine configuration from application settings."""
    return engine_config_from_settings(get_settings())


def get_rate_defaults() -> RateDefaults:
    """Compiled rate fallbacks from application settings."""
    return rate_defaults_from_settings(get_settings())


def get_now() -> datetime:
    """Current time as naive UTC. Overridden in tests."""
    return datetime.utcnow()
