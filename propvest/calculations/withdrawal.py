"""
Withdrawal Quotes

Composes returns, penalty and management fee into the amount payable if an
investment is withdrawn at a given instant.

Exactly one regime applies:

- early (before the lock-in end date): rental yield minus penalty,
  appreciation is forced to zero
- mature (at or after the lock-in end date): rental yield plus appreciation,
  penalty is forced to zero

The two regimes are terminal valuation states; nothing is blended.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from propvest.calculations.fees import apply_fee
from propvest.calculations.money import ZERO, quantize_money, quantize_years
from propvest.calculations.penalty import UnmatchedTierPolicy, quote_penalty
from propvest.calculations.records import InvestmentRecord
from propvest.calculations.returns import compute_returns
from propvest.calculations.timing import STANDARD_YEAR


class Regime(str, enum.Enum):
    """Withdrawal valuation regime."""
    early = "early"
    mature = "mature"


@dataclass(frozen=True)
class WithdrawalQuote:
    """Payable amount for a withdrawal. Money fields are quantized to cents."""

    principal: Decimal
    rental_yield_earned: Decimal
    appreciation_gain: Decimal
    penalty_amount: Decimal
    penalty_percentage: Decimal
    penalty_year: Optional[int]
    fee_deducted: Decimal
    net_payable: Decimal
    regime: Regime
    holding_period_years: Decimal
    withdrawal_date: datetime


def determine_regime(lock_in_end_date: datetime, now: datetime) -> Regime:
    if now < lock_in_end_date:
        return Regime.early
    return Regime.mature


def build_quote(
    investment: InvestmentRecord,
    now: datetime,
    year_length: timedelta = STANDARD_YEAR,
    unmatched_tier_policy: UnmatchedTierPolicy = UnmatchedTierPolicy.zero,
) -> WithdrawalQuote:
    """
    Build a withdrawal quote from the investment's frozen snapshot.

    Args:
        investment: Holding with its creation-time rates
        now: Withdrawal instant
        year_length: Duration of one investment year
        unmatched_tier_policy: Behaviour for graduated schedules with gaps

    Returns:
        WithdrawalQuote tagged with the regime that applied
    """
    rates = investment.rates
    principal = investment.principal

    returns = compute_returns(
        principal=principal,
        rental_yield_rate=rates.rental_yield,
        appreciation_rate=rates.appreciation,
        maturity_years=rates.maturity_years,
        created_at=investment.created_at,
        maturity_date=investment.maturity_date,
        now=now,
        year_length=year_length,
    )

    penalty = quote_penalty(
        created_at=investment.created_at,
        withdrawal_date=now,
        lock_in_end_date=investment.lock_in_end_date,
        flat_penalty_rate=rates.penalty,
        graduated_penalties=investment.terms.graduated_penalties,
        year_length=year_length,
        unmatched_tier_policy=unmatched_tier_policy,
    )

    regime = determine_regime(investment.lock_in_end_date, now)

    if regime == Regime.early:
        appreciation = ZERO
        penalty_amount = quantize_money(penalty.amount_for(principal))
        penalty_percentage = penalty.percentage
        penalty_year = penalty.year_applied
    else:
        appreciation = returns.appreciation_gain
        penalty_amount = ZERO
        penalty_percentage = ZERO
        penalty_year = None

    fee = apply_fee(
        gross_rental_yield=returns.rental_yield_earned,
        gross_appreciation=appreciation,
        fee_percentage=investment.management_fee.fee_percentage,
        deduction_type=investment.management_fee.deduction_type,
    )

    rental_yield_earned = quantize_money(returns.rental_yield_earned)
    appreciation_gain = quantize_money(appreciation)
    fee_deducted = quantize_money(fee.fee_deducted)

    net_payable = (
        principal
        + rental_yield_earned
        + appreciation_gain
        - penalty_amount
        - fee_deducted
    )

    return WithdrawalQuote(
        principal=quantize_money(principal),
        rental_yield_earned=rental_yield_earned,
        appreciation_gain=appreciation_gain,
        penalty_amount=quantize_money(penalty_amount),
        penalty_percentage=penalty_percentage,
        penalty_year=penalty_year,
        fee_deducted=fee_deducted,
        net_payable=quantize_money(net_payable),
        regime=regime,
        holding_period_years=quantize_years(returns.holding_period_years),
        withdrawal_date=now,
    )
