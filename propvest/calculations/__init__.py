"""
Investment Returns & Withdrawal Calculation Engine

Pure calculation modules: no I/O, no logging, no wall-clock reads.
Callers pass plain records and an explicit valuation instant.
"""

from propvest.calculations import (
    engine,
    errors,
    fees,
    origination,
    penalty,
    rates,
    returns,
    withdrawal,
)
from propvest.calculations.engine import (
    EngineConfig,
    compute_unrealized_returns,
    compute_withdrawal_quote,
    project_returns,
)

__all__ = [
    "engine",
    "errors",
    "fees",
    "origination",
    "penalty",
    "rates",
    "returns",
    "withdrawal",
    "EngineConfig",
    "compute_unrealized_returns",
    "compute_withdrawal_quote",
    "project_returns",
]
