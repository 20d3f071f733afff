"""
Plain data records consumed and produced by the calculation engine.

Records are frozen dataclasses: the engine never mutates its inputs and the
persistence layer converts ORM rows into these before calling it.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple, Union

from propvest.calculations.errors import InvalidPrincipalError


class InvestmentType(str, enum.Enum):
    """Which lock-in/maturity wiring an investment uses."""
    simple_annual = "simple_annual"
    bond = "bond"


class InvestmentStatus(str, enum.Enum):
    """Investment lifecycle status."""
    pending = "pending"
    confirmed = "confirmed"
    withdrawal_requested = "withdrawal_requested"
    withdrawn = "withdrawn"
    cancelled = "cancelled"


class FeeDeductionType(str, enum.Enum):
    """When the management fee is charged."""
    upfront = "upfront"
    recurring = "recurring"


@dataclass(frozen=True)
class GraduatedPenalty:
    """Penalty percentage for one 1-based investment year."""

    year: int
    penalty_percentage: Decimal

    def __post_init__(self):
        if self.year < 1:
            raise ValueError(f"Penalty tier year must be >= 1, got {self.year}")
        if self.penalty_percentage < 0:
            raise ValueError("Penalty percentage must not be negative")


@dataclass(frozen=True)
class EffectiveRates:
    """Rates frozen on an investment at creation time."""

    rental_yield: Decimal  # Annual %, e.g. Decimal("8") for 8%
    appreciation: Decimal  # Annual %
    penalty: Decimal  # Flat early-withdrawal %
    maturity_years: Decimal  # Rental-yield accrual cap


@dataclass(frozen=True)
class ManagementFee:
    """Management fee snapshot taken when the investment was opened."""

    fee_percentage: Decimal = Decimal("0")
    fee_amount: Decimal = Decimal("0")
    net_investment: Decimal = Decimal("0")
    deduction_type: FeeDeductionType = FeeDeductionType.upfront


@dataclass(frozen=True)
class AnnualTerms:
    """Simple annual investment: lock-in ends when the investment matures."""

    maturity_date: datetime

    investment_type = InvestmentType.simple_annual

    @property
    def lock_in_end_date(self) -> datetime:
        return self.maturity_date

    @property
    def graduated_penalties(self) -> Tuple[GraduatedPenalty, ...]:
        return ()


@dataclass(frozen=True)
class BondTerms:
    """Bond investment: admin-configured lock-in distinct from maturity."""

    lock_in_end_date: datetime
    maturity_date: datetime
    graduated_penalties: Tuple[GraduatedPenalty, ...] = ()

    investment_type = InvestmentType.bond


InvestmentTerms = Union[AnnualTerms, BondTerms]


@dataclass(frozen=True)
class InvestmentRecord:
    """
    A single holding with its frozen terms.

    ``principal`` is net of any upfront management fee. Construction fails
    with ``InvalidPrincipalError`` when it is not positive.
    """

    principal: Decimal
    terms: InvestmentTerms
    rates: EffectiveRates
    created_at: datetime
    management_fee: ManagementFee = field(default_factory=ManagementFee)
    status: InvestmentStatus = InvestmentStatus.confirmed
    gross_amount: Optional[Decimal] = None
    id: Optional[str] = None

    def __post_init__(self):
        if self.principal <= 0:
            raise InvalidPrincipalError(self.principal)

    @property
    def investment_type(self) -> InvestmentType:
        return self.terms.investment_type

    @property
    def lock_in_end_date(self) -> datetime:
        return self.terms.lock_in_end_date

    @property
    def maturity_date(self) -> datetime:
        return self.terms.maturity_date


@dataclass(frozen=True)
class PropertyInvestmentTerms:
    """Per-property overrides. ``None`` defers to the global settings."""

    rental_yield_rate: Optional[Decimal] = None
    appreciation_rate: Optional[Decimal] = None
    locking_period_years: Optional[Decimal] = None
    early_withdrawal_penalty_percentage: Optional[Decimal] = None
    graduated_penalties: Optional[Tuple[GraduatedPenalty, ...]] = None
    management_fee_percentage: Optional[Decimal] = None
    fee_deduction_type: Optional[FeeDeductionType] = None
    bond_lock_in_years: Optional[Decimal] = None


@dataclass(frozen=True)
class GlobalInvestmentSettings:
    """Platform-wide defaults. Ignored entirely when ``is_active`` is False."""

    rental_yield_percentage: Optional[Decimal] = None
    appreciation_rate_percentage: Optional[Decimal] = None
    maturity_period_years: Optional[Decimal] = None
    early_withdrawal_penalty_percentage: Optional[Decimal] = None
    platform_fee_percentage: Optional[Decimal] = None
    min_investment_amount: Optional[Decimal] = None
    max_investment_amount: Optional[Decimal] = None
    is_active: bool = True
