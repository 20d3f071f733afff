"""
Returns Calculations

Rental yield and appreciation for a holding as of a given instant.

- Rental yield is linear (non-compounding) and capped at the maturity period.
- Appreciation compounds annually on principal, and only for the time held
  after the maturity date.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from propvest.calculations.money import ZERO, HUNDRED, percent_of
from propvest.calculations.timing import STANDARD_YEAR, years_between


@dataclass(frozen=True)
class Returns:
    """Gross returns at full precision."""

    rental_yield_earned: Decimal
    appreciation_gain: Decimal
    is_after_maturity: bool
    holding_period_years: Decimal


def calculate_rental_yield(
    principal: Decimal, rental_yield_rate: Decimal, years: Decimal
) -> Decimal:
    """Linear rental yield: principal * rate% * years."""
    return percent_of(principal, rental_yield_rate) * years


def calculate_appreciation(
    principal: Decimal, appreciation_rate: Decimal, years: Decimal
) -> Decimal:
    """
    Compound appreciation gain on principal.

    FV = PV * (1 + r)^n, gain = FV - PV. ``years`` may be fractional.
    """
    if years <= 0:
        return ZERO
    growth = (1 + appreciation_rate / HUNDRED) ** years
    return principal * growth - principal


def compute_returns(
    principal: Decimal,
    rental_yield_rate: Decimal,
    appreciation_rate: Decimal,
    maturity_years: Decimal,
    created_at: datetime,
    maturity_date: datetime,
    now: datetime,
    year_length: timedelta = STANDARD_YEAR,
) -> Returns:
    """
    Compute gross rental yield and appreciation as of ``now``.

    Args:
        principal: Amount invested, net of any upfront fee
        rental_yield_rate: Annual rental yield in percent
        appreciation_rate: Annual appreciation in percent
        maturity_years: Rental-yield accrual cap in years
        created_at: Investment date
        maturity_date: Instant after which appreciation accrues
        now: Valuation instant
        year_length: Duration of one investment year

    Returns:
        Returns at full precision

    Raises:
        NegativeHoldingPeriodError: if ``now`` is before ``created_at``
    """
    holding_years = years_between(created_at, now, year_length)

    capped_years = min(holding_years, maturity_years)
    rental_yield = calculate_rental_yield(principal, rental_yield_rate, capped_years)

    is_after_maturity = now >= maturity_date

    appreciation = ZERO
    if is_after_maturity:
        years_after_maturity = max(ZERO, holding_years - maturity_years)
        appreciation = calculate_appreciation(
            principal, appreciation_rate, years_after_maturity
        )

    return Returns(
        rental_yield_earned=rental_yield,
        appreciation_gain=appreciation,
        is_after_maturity=is_after_maturity,
        holding_period_years=holding_years,
    )
