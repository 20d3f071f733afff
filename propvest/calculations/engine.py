"""
Engine entry points.

The persistence/HTTP layer calls only these functions. Every call takes the
valuation instant explicitly and an ``EngineConfig`` carrying the year
length and penalty-tier policy, so results never depend on the wall clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from propvest.calculations.fees import apply_fee
from propvest.calculations.money import (
    ZERO,
    percent_of,
    quantize_money,
    quantize_years,
)
from propvest.calculations.penalty import UnmatchedTierPolicy
from propvest.calculations.records import EffectiveRates, InvestmentRecord
from propvest.calculations.returns import (
    calculate_appreciation,
    calculate_rental_yield,
    compute_returns,
)
from propvest.calculations.timing import STANDARD_YEAR
from propvest.calculations.withdrawal import WithdrawalQuote, build_quote


@dataclass(frozen=True)
class EngineConfig:
    """Injected engine parameters."""

    year_length: timedelta = STANDARD_YEAR
    unmatched_tier_policy: UnmatchedTierPolicy = UnmatchedTierPolicy.zero


DEFAULT_ENGINE_CONFIG = EngineConfig()


@dataclass(frozen=True)
class ReturnsSnapshot:
    """Unrealized position of a holding, for portfolio display. No penalty."""

    principal: Decimal
    holding_period_years: Decimal
    gross_rental_yield: Decimal
    gross_appreciation: Decimal
    management_fee: Decimal
    rental_yield_earned: Decimal
    appreciation_gain: Decimal
    current_value: Decimal
    total_returns: Decimal
    is_after_maturity: bool
    maturity_date: datetime


@dataclass(frozen=True)
class ProjectedReturns:
    """What an amount would earn if held for ``holding_years``."""

    amount: Decimal
    holding_years: Decimal
    annual_rental_income: Decimal
    rental_yield: Decimal
    appreciation_gain: Decimal
    total_returns: Decimal
    projected_value: Decimal
    early_withdrawal_penalty: Decimal
    amount_after_penalty: Decimal


def compute_unrealized_returns(
    investment: InvestmentRecord,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ReturnsSnapshot:
    """Value a holding as of ``now`` without any withdrawal penalty."""
    rates = investment.rates
    returns = compute_returns(
        principal=investment.principal,
        rental_yield_rate=rates.rental_yield,
        appreciation_rate=rates.appreciation,
        maturity_years=rates.maturity_years,
        created_at=investment.created_at,
        maturity_date=investment.maturity_date,
        now=now,
        year_length=config.year_length,
    )
    fee = apply_fee(
        gross_rental_yield=returns.rental_yield_earned,
        gross_appreciation=returns.appreciation_gain,
        fee_percentage=investment.management_fee.fee_percentage,
        deduction_type=investment.management_fee.deduction_type,
    )

    rental_yield = quantize_money(fee.net_rental_yield)
    appreciation = quantize_money(fee.net_appreciation)
    principal = quantize_money(investment.principal)
    current_value = principal + rental_yield + appreciation

    return ReturnsSnapshot(
        principal=principal,
        holding_period_years=quantize_years(returns.holding_period_years),
        gross_rental_yield=quantize_money(returns.rental_yield_earned),
        gross_appreciation=quantize_money(returns.appreciation_gain),
        management_fee=quantize_money(fee.fee_deducted),
        rental_yield_earned=rental_yield,
        appreciation_gain=appreciation,
        current_value=current_value,
        total_returns=current_value - principal,
        is_after_maturity=returns.is_after_maturity,
        maturity_date=investment.maturity_date,
    )


def compute_withdrawal_quote(
    investment: InvestmentRecord,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> WithdrawalQuote:
    """Quote the payable amount if ``investment`` is withdrawn at ``now``."""
    return build_quote(
        investment,
        now,
        year_length=config.year_length,
        unmatched_tier_policy=config.unmatched_tier_policy,
    )


def project_returns(
    amount: Decimal,
    rates: EffectiveRates,
    holding_years: Optional[Decimal] = None,
) -> ProjectedReturns:
    """
    Preview returns for a prospective investment.

    Uses the same rules as a real holding: rental yield capped at the
    maturity period, appreciation only for years held past maturity.
    ``holding_years`` defaults to the maturity period.
    """
    amount = Decimal(amount)
    if holding_years is None:
        holding_years = rates.maturity_years
    holding_years = Decimal(holding_years)
    if holding_years < 0:
        raise ValueError("holding_years must not be negative")

    rental_yield = calculate_rental_yield(
        amount, rates.rental_yield, min(holding_years, rates.maturity_years)
    )
    appreciation = calculate_appreciation(
        amount, rates.appreciation, max(ZERO, holding_years - rates.maturity_years)
    )
    penalty = quantize_money(percent_of(amount, rates.penalty))

    rental_yield = quantize_money(rental_yield)
    appreciation = quantize_money(appreciation)

    return ProjectedReturns(
        amount=quantize_money(amount),
        holding_years=holding_years,
        annual_rental_income=quantize_money(percent_of(amount, rates.rental_yield)),
        rental_yield=rental_yield,
        appreciation_gain=appreciation,
        total_returns=rental_yield + appreciation,
        projected_value=quantize_money(amount) + rental_yield + appreciation,
        early_withdrawal_penalty=penalty,
        amount_after_penalty=quantize_money(amount) - penalty,
    )
