"""
Rate Resolution

Resolves the effective rates for a new investment by walking, per field:

1. Investment snapshot (frozen values already on the record)
2. Property override (``PropertyInvestmentTerms``)
3. Active global settings (``GlobalInvestmentSettings``)
4. Compiled defaults (``DEFAULT_RATES``)

Only origination calls this. Once an investment exists its ``rates`` are
read as-is and never re-resolved.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from propvest.calculations.errors import MissingRateConfigurationError
from propvest.calculations.records import (
    EffectiveRates,
    FeeDeductionType,
    GlobalInvestmentSettings,
    GraduatedPenalty,
    PropertyInvestmentTerms,
)


@dataclass(frozen=True)
class RateDefaults:
    """Compiled fallbacks. A ``None`` field disables that fallback."""

    rental_yield: Optional[Decimal] = Decimal("8")
    appreciation: Optional[Decimal] = Decimal("3")
    penalty: Optional[Decimal] = Decimal("5")
    maturity_years: Optional[Decimal] = Decimal("5")


DEFAULT_RATES = RateDefaults()

DEFAULT_FEE_PERCENTAGE = Decimal("0")
DEFAULT_FEE_DEDUCTION = FeeDeductionType.upfront
DEFAULT_BOND_LOCK_IN_YEARS = Decimal("1")

# (EffectiveRates field, PropertyInvestmentTerms field, GlobalInvestmentSettings field)
_RATE_CHAIN = (
    ("rental_yield", "rental_yield_rate", "rental_yield_percentage"),
    ("appreciation", "appreciation_rate", "appreciation_rate_percentage"),
    ("penalty", "early_withdrawal_penalty_percentage", "early_withdrawal_penalty_percentage"),
    ("maturity_years", "locking_period_years", "maturity_period_years"),
)


def _first_set(*candidates):
    for value in candidates:
        if value is not None:
            return value
    return None


def active_settings(
    global_settings: Optional[GlobalInvestmentSettings],
) -> Optional[GlobalInvestmentSettings]:
    """Return the settings only if present and active."""
    if global_settings is None or not global_settings.is_active:
        return None
    return global_settings


def resolve_rates(
    snapshot: Optional[EffectiveRates] = None,
    property_terms: Optional[PropertyInvestmentTerms] = None,
    global_settings: Optional[GlobalInvestmentSettings] = None,
    defaults: RateDefaults = DEFAULT_RATES,
) -> EffectiveRates:
    """
    Resolve rental yield, appreciation, penalty and maturity years.

    Args:
        snapshot: Rates already frozen on an investment, if any
        property_terms: Property-level overrides
        global_settings: Platform defaults (ignored when inactive)
        defaults: Compiled fallbacks

    Returns:
        EffectiveRates with every field set

    Raises:
        MissingRateConfigurationError: if a field is unresolvable at every tier
    """
    settings = active_settings(global_settings)
    resolved = {}

    for rate_field, property_field, settings_field in _RATE_CHAIN:
        value = _first_set(
            getattr(snapshot, rate_field, None),
            getattr(property_terms, property_field, None),
            getattr(settings, settings_field, None),
            getattr(defaults, rate_field),
        )
        if value is None:
            raise MissingRateConfigurationError(rate_field)
        resolved[rate_field] = Decimal(value)

    if resolved["maturity_years"] <= 0:
        raise ValueError("Maturity period must be a positive number of years")

    return EffectiveRates(**resolved)


def resolve_fee_policy(
    property_terms: Optional[PropertyInvestmentTerms] = None,
) -> Tuple[Decimal, FeeDeductionType]:
    """Resolve management fee percentage and deduction type (property > none).

    The global platform fee is a platform-level figure and never priced into
    an individual holding.
    """
    percentage = _first_set(
        getattr(property_terms, "management_fee_percentage", None),
        DEFAULT_FEE_PERCENTAGE,
    )
    deduction_type = _first_set(
        getattr(property_terms, "fee_deduction_type", None),
        DEFAULT_FEE_DEDUCTION,
    )
    return Decimal(percentage), FeeDeductionType(deduction_type)


def resolve_graduated_penalties(
    property_terms: Optional[PropertyInvestmentTerms] = None,
) -> Tuple[GraduatedPenalty, ...]:
    """Graduated schedule to snapshot onto a bond, ordered by year."""
    tiers = getattr(property_terms, "graduated_penalties", None) or ()
    return tuple(sorted(tiers, key=lambda tier: tier.year))


def resolve_bond_lock_in_years(
    property_terms: Optional[PropertyInvestmentTerms] = None,
) -> Decimal:
    return Decimal(
        _first_set(
            getattr(property_terms, "bond_lock_in_years", None),
            DEFAULT_BOND_LOCK_IN_YEARS,
        )
    )
