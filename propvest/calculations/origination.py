"""
Investment Origination

Opens a new investment: resolves rates once, splits the upfront fee,
derives the lock-in and maturity dates and freezes everything into an
``InvestmentRecord``. Also holds the investment status lifecycle.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from propvest.calculations.errors import (
    InvalidPrincipalError,
    InvalidStatusTransitionError,
    InvestmentLimitError,
)
from propvest.calculations.fees import split_upfront_fee
from propvest.calculations.rates import (
    DEFAULT_RATES,
    RateDefaults,
    active_settings,
    resolve_bond_lock_in_years,
    resolve_fee_policy,
    resolve_graduated_penalties,
    resolve_rates,
)
from propvest.calculations.records import (
    AnnualTerms,
    BondTerms,
    GlobalInvestmentSettings,
    InvestmentRecord,
    InvestmentStatus,
    InvestmentType,
    PropertyInvestmentTerms,
)
from propvest.calculations.timing import STANDARD_YEAR, add_years

# Allowed status moves. A rejected withdrawal request returns to confirmed.
STATUS_TRANSITIONS = {
    InvestmentStatus.pending: {InvestmentStatus.confirmed, InvestmentStatus.cancelled},
    InvestmentStatus.confirmed: {InvestmentStatus.withdrawal_requested},
    InvestmentStatus.withdrawal_requested: {
        InvestmentStatus.withdrawn,
        InvestmentStatus.confirmed,
    },
    InvestmentStatus.withdrawn: set(),
    InvestmentStatus.cancelled: set(),
}


def check_investment_limits(
    amount: Decimal, global_settings: Optional[GlobalInvestmentSettings]
) -> None:
    """Validate ``amount`` against the active settings' min/max bounds."""
    if amount <= 0:
        raise InvalidPrincipalError(amount)

    settings = active_settings(global_settings)
    if settings is None:
        return

    minimum = settings.min_investment_amount
    maximum = settings.max_investment_amount
    if (minimum is not None and amount < minimum) or (
        maximum is not None and amount > maximum
    ):
        raise InvestmentLimitError(amount, minimum, maximum)


def open_investment(
    amount: Decimal,
    created_at: datetime,
    investment_type: InvestmentType = InvestmentType.simple_annual,
    property_terms: Optional[PropertyInvestmentTerms] = None,
    global_settings: Optional[GlobalInvestmentSettings] = None,
    defaults: RateDefaults = DEFAULT_RATES,
    year_length: timedelta = STANDARD_YEAR,
    investment_id: Optional[str] = None,
) -> InvestmentRecord:
    """
    Create the frozen snapshot for a new investment.

    Args:
        amount: Gross amount paid by the investor
        created_at: Investment date
        investment_type: simple_annual or bond
        property_terms: Property-level overrides
        global_settings: Platform defaults and investment limits
        defaults: Compiled rate fallbacks
        year_length: Duration of one investment year
        investment_id: Identifier assigned by the persistence layer, if known

    Returns:
        InvestmentRecord in ``confirmed`` status

    Raises:
        InvalidPrincipalError: amount (or amount net of fee) is not positive
        InvestmentLimitError: amount outside min/max bounds
        MissingRateConfigurationError: a rate cannot be resolved
    """
    amount = Decimal(amount)
    check_investment_limits(amount, global_settings)

    rates = resolve_rates(
        property_terms=property_terms,
        global_settings=global_settings,
        defaults=defaults,
    )
    fee_percentage, deduction_type = resolve_fee_policy(property_terms)
    management_fee = split_upfront_fee(amount, fee_percentage, deduction_type)

    maturity_date = add_years(created_at, rates.maturity_years, year_length)

    if InvestmentType(investment_type) == InvestmentType.bond:
        lock_in_years = resolve_bond_lock_in_years(property_terms)
        terms = BondTerms(
            lock_in_end_date=add_years(created_at, lock_in_years, year_length),
            maturity_date=maturity_date,
            graduated_penalties=resolve_graduated_penalties(property_terms),
        )
    else:
        terms = AnnualTerms(maturity_date=maturity_date)

    return InvestmentRecord(
        principal=management_fee.net_investment,
        terms=terms,
        rates=rates,
        created_at=created_at,
        management_fee=management_fee,
        status=InvestmentStatus.confirmed,
        gross_amount=amount,
        id=investment_id,
    )


def transition(
    investment: InvestmentRecord, new_status: InvestmentStatus
) -> InvestmentRecord:
    """Return a copy of ``investment`` in ``new_status``; rates stay frozen."""
    new_status = InvestmentStatus(new_status)
    if new_status not in STATUS_TRANSITIONS[investment.status]:
        raise InvalidStatusTransitionError(investment.status, new_status)
    return replace(investment, status=new_status)
