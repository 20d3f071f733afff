"""
Stateless calculation API endpoints.

These endpoints accept a plain investment record and a valuation instant
and return engine results. Nothing is read from or written to the database,
except the projection preview which reads the active settings.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from propvest.calculations.engine import (
    EngineConfig,
    compute_unrealized_returns,
    compute_withdrawal_quote,
    project_returns,
)
from propvest.calculations.rates import RateDefaults, resolve_rates
from propvest.calculations.records import (
    AnnualTerms,
    BondTerms,
    EffectiveRates,
    FeeDeductionType,
    GraduatedPenalty,
    InvestmentRecord,
    InvestmentType,
    ManagementFee,
)
from propvest.api.dependencies import get_engine_config, get_rate_defaults
from propvest.db.database import get_db
from propvest.services.investments import (
    as_naive_utc,
    get_active_settings,
    settings_to_record,
)

router = APIRouter()


class GraduatedPenaltySchema(BaseModel):
    """One tier of a graduated penalty schedule."""

    year: int = Field(ge=1)
    penalty_percentage: Decimal = Field(ge=0, le=100)


class InvestmentRecordInput(BaseModel):
    """Plain investment record supplied by the caller."""

    principal: Decimal
    investment_type: InvestmentType = InvestmentType.simple_annual

    # Frozen rates
    rental_yield_rate: Decimal = Field(ge=0, le=100)
    appreciation_rate: Decimal = Field(ge=0, le=100)
    penalty_rate: Decimal = Field(ge=0, le=100)
    maturity_period_years: Decimal = Field(gt=0)

    # Dates
    created_at: datetime
    maturity_date: datetime
    lock_in_end_date: Optional[datetime] = None  # Bond only
    graduated_penalties: List[GraduatedPenaltySchema] = []

    # Management fee
    fee_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    fee_deduction_type: FeeDeductionType = FeeDeductionType.upfront

    def to_record(self) -> InvestmentRecord:
        """Build the engine record. Raises InvalidPrincipalError for principal <= 0."""
        maturity_date = as_naive_utc(self.maturity_date)
        if self.investment_type == InvestmentType.bond:
            terms = BondTerms(
                lock_in_end_date=as_naive_utc(self.lock_in_end_date or self.maturity_date),
                maturity_date=maturity_date,
                graduated_penalties=tuple(
                    sorted(
                        (
                            GraduatedPenalty(t.year, t.penalty_percentage)
                            for t in self.graduated_penalties
                        ),
                        key=lambda tier: tier.year,
                    )
                ),
            )
        else:
            terms = AnnualTerms(maturity_date=maturity_date)

        return InvestmentRecord(
            principal=self.principal,
            terms=terms,
            rates=EffectiveRates(
                rental_yield=self.rental_yield_rate,
                appreciation=self.appreciation_rate,
                penalty=self.penalty_rate,
                maturity_years=self.maturity_period_years,
            ),
            created_at=as_naive_utc(self.created_at),
            management_fee=ManagementFee(
                fee_percentage=self.fee_percentage,
                net_investment=self.principal,
                deduction_type=self.fee_deduction_type,
            ),
        )


class ValuationInput(BaseModel):
    """Investment record plus the valuation instant."""

    investment: InvestmentRecordInput
    now: datetime


class ReturnsSnapshotResponse(BaseModel):
    """Unrealized returns of a holding."""

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

    class Config:
        from_attributes = True


class WithdrawalQuoteResponse(BaseModel):
    """Withdrawal quote with the regime that applied."""

    principal: Decimal
    rental_yield_earned: Decimal
    appreciation_gain: Decimal
    penalty_amount: Decimal
    penalty_percentage: Decimal
    penalty_year: Optional[int] = None
    fee_deducted: Decimal
    net_payable: Decimal
    regime: str
    holding_period_years: Decimal
    withdrawal_date: datetime

    class Config:
        from_attributes = True


class ProjectionInput(BaseModel):
    """Input for a returns preview."""

    investment_amount: Decimal = Field(gt=0)
    holding_years: Optional[Decimal] = Field(default=None, ge=0)


class ProjectionResponse(BaseModel):
    """Projected returns and the rates used."""

    rental_yield_rate: Decimal
    appreciation_rate: Decimal
    penalty_rate: Decimal
    maturity_period_years: Decimal

    amount: Decimal
    holding_years: Decimal
    annual_rental_income: Decimal
    rental_yield: Decimal
    appreciation_gain: Decimal
    total_returns: Decimal
    projected_value: Decimal
    early_withdrawal_penalty: Decimal
    amount_after_penalty: Decimal


def quote_to_response(quote) -> WithdrawalQuoteResponse:
    return WithdrawalQuoteResponse(
        principal=quote.principal,
        rental_yield_earned=quote.rental_yield_earned,
        appreciation_gain=quote.appreciation_gain,
        penalty_amount=quote.penalty_amount,
        penalty_percentage=quote.penalty_percentage,
        penalty_year=quote.penalty_year,
        fee_deducted=quote.fee_deducted,
        net_payable=quote.net_payable,
        regime=quote.regime.value,
        holding_period_years=quote.holding_period_years,
        withdrawal_date=quote.withdrawal_date,
    )


@router.post("/returns", response_model=ReturnsSnapshotResponse)
async def calculate_returns(
    inputs: ValuationInput,
    config: EngineConfig = Depends(get_engine_config),
):
    """Unrealized returns for an investment record (no penalty)."""
    snapshot = compute_unrealized_returns(
        inputs.investment.to_record(), as_naive_utc(inputs.now), config
    )
    return ReturnsSnapshotResponse.model_validate(snapshot)


@router.post("/withdrawal-quote", response_model=WithdrawalQuoteResponse)
async def calculate_withdrawal_quote(
    inputs: ValuationInput,
    config: EngineConfig = Depends(get_engine_config),
):
    """Withdrawal quote for an investment record at ``now``."""
    quote = compute_withdrawal_quote(
        inputs.investment.to_record(), as_naive_utc(inputs.now), config
    )
    return quote_to_response(quote)


@router.post("/projection", response_model=ProjectionResponse)
async def calculate_projection(
    inputs: ProjectionInput,
    db: Session = Depends(get_db),
    defaults: RateDefaults = Depends(get_rate_defaults),
):
    """Preview returns for an amount using the active global settings."""
    rates = resolve_rates(
        global_settings=settings_to_record(get_active_settings(db)),
        defaults=defaults,
    )
    projection = project_returns(inputs.investment_amount, rates, inputs.holding_years)

    return ProjectionResponse(
        rental_yield_rate=rates.rental_yield,
        appreciation_rate=rates.appreciation,
        penalty_rate=rates.penalty,
        maturity_period_years=rates.maturity_years,
        amount=projection.amount,
        holding_years=projection.holding_years,
        annual_rental_income=projection.annual_rental_income,
        rental_yield=projection.rental_yield,
        appreciation_gain=projection.appreciation_gain,
        total_returns=projection.total_returns,
        projected_value=projection.projected_value,
        early_withdrawal_penalty=projection.early_withdrawal_penalty,
        amount_after_penalty=projection.amount_after_penalty,
    )
