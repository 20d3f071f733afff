"""
Investment API endpoints.

Originates investments, lists holdings with their unrealized returns, and
manages withdrawal requests. Authentication is handled upstream; the caller
supplies the investor id.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from propvest.api.calculations import (
    ReturnsSnapshotResponse,
    WithdrawalQuoteResponse,
    quote_to_response,
)
from propvest.api.dependencies import get_engine_config, get_now, get_rate_defaults
from propvest.calculations.engine import (
    EngineConfig,
    compute_unrealized_returns,
    compute_withdrawal_quote,
)
from propvest.calculations.rates import RateDefaults
from propvest.calculations.records import InvestmentStatus, InvestmentType
from propvest.db.database import get_db
from propvest.db.models import Investment, Property, WithdrawalRequest
from propvest.services import investments as investment_service

router = APIRouter()

INVESTABLE_PROPERTY_STATUSES = ("active", "funding")


class InvestmentCreate(BaseModel):
    """Schema for opening an investment."""

    investor_id: str
    property_id: str
    amount: Decimal = Field(gt=0)
    investment_type: InvestmentType = InvestmentType.simple_annual


class InvestmentResponse(BaseModel):
    """Schema for an investment with its frozen terms."""

    id: str
    investor_id: str
    property_id: str
    investment_type: InvestmentType
    status: InvestmentStatus
    amount: Decimal
    principal: Decimal
    fee_percentage: Decimal
    fee_amount: Decimal
    fee_deduction_type: str
    rental_yield_rate: Decimal
    appreciation_rate: Decimal
    penalty_rate: Decimal
    maturity_period_years: Decimal
    investment_date: datetime
    lock_in_end_date: datetime
    maturity_date: datetime


class HoldingResponse(BaseModel):
    """An investment and its unrealized returns."""

    investment: InvestmentResponse
    returns: ReturnsSnapshotResponse


class PortfolioResponse(BaseModel):
    """Investor portfolio summary."""

    holdings: List[HoldingResponse]
    total_invested: Decimal
    total_current_value: Decimal
    total_returns: Decimal
    total: int


class WithdrawRequestBody(BaseModel):
    reason: Optional[str] = None


class WithdrawalReview(BaseModel):
    rejection_reason: Optional[str] = None
    rejection_comment: Optional[str] = None


class WithdrawalRequestResponse(BaseModel):
    """Schema for a withdrawal request."""

    id: str
    investment_id: str
    investor_id: str
    status: str
    regime: str
    principal_amount: Decimal
    rental_yield_earned: Decimal
    appreciation_gain: Decimal
    penalty_amount: Decimal
    fee_deducted: Decimal
    amount: Decimal
    reason: Optional[str] = None
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


def investment_to_response(row: Investment) -> InvestmentResponse:
    return InvestmentResponse(
        id=row.id,
        investor_id=row.investor_id,
        property_id=row.property_id,
        investment_type=row.investment_type,
        status=row.status,
        amount=row.amount,
        principal=row.principal,
        fee_percentage=row.fee_percentage,
        fee_amount=row.fee_amount,
        fee_deduction_type=row.fee_deduction_type.value,
        rental_yield_rate=row.rental_yield_rate,
        appreciation_rate=row.appreciation_rate,
        penalty_rate=row.penalty_rate,
        maturity_period_years=row.maturity_period_years,
        investment_date=row.investment_date,
        lock_in_end_date=row.lock_in_end_date,
        maturity_date=row.maturity_date,
    )


def withdrawal_to_response(request: WithdrawalRequest) -> WithdrawalRequestResponse:
    return WithdrawalRequestResponse(
        id=request.id,
        investment_id=request.investment_id,
        investor_id=request.investor_id,
        status=request.status.value,
        regime=request.regime,
        principal_amount=request.principal_amount,
        rental_yield_earned=request.rental_yield_earned,
        appreciation_gain=request.appreciation_gain,
        penalty_amount=request.penalty_amount,
        fee_deducted=request.fee_deducted,
        amount=request.amount,
        reason=request.reason,
        requested_at=request.requested_at,
        reviewed_at=request.reviewed_at,
        rejection_reason=request.rejection_reason,
    )


def _get_investment(db: Session, investment_id: str) -> Investment:
    row = (
        db.query(Investment)
        .filter(Investment.id == investment_id, Investment.is_deleted == False)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Investment not found")
    return row


def _get_withdrawal_request(db: Session, request_id: str) -> WithdrawalRequest:
    request = db.query(WithdrawalRequest).filter(WithdrawalRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Withdrawal request not found")
    return request


@router.post("/", response_model=InvestmentResponse, status_code=201)
async def create_investment(
    data: InvestmentCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    defaults: RateDefaults = Depends(get_rate_defaults),
    config: EngineConfig = Depends(get_engine_config),
):
    """Open an investment, freezing the rates in effect right now."""
    prop = (
        db.query(Property)
        .filter(Property.id == data.property_id, Property.is_deleted == False)
        .first()
    )
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    if prop.status not in INVESTABLE_PROPERTY_STATUSES:
        raise HTTPException(status_code=400, detail="Property not available for investment")

    if prop.min_investment is not None and data.amount < prop.min_investment:
        raise HTTPException(
            status_code=400, detail=f"Minimum investment is {prop.min_investment}"
        )

    row = investment_service.create_investment(
        db,
        investor_id=data.investor_id,
        prop=prop,
        amount=data.amount,
        investment_type=data.investment_type,
        now=now,
        defaults=defaults,
        config=config,
    )
    return investment_to_response(row)


@router.get("/", response_model=PortfolioResponse)
async def list_investments(
    investor_id: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    """List an investor's confirmed holdings with unrealized returns."""
    rows = (
        db.query(Investment)
        .filter(
            Investment.investor_id == investor_id,
            Investment.status == InvestmentStatus.confirmed,
            Investment.is_deleted == False,
        )
        .order_by(Investment.investment_date.desc())
        .all()
    )

    holdings = []
    total_invested = Decimal("0.00")
    total_current_value = Decimal("0.00")

    for row in rows:
        snapshot = compute_unrealized_returns(
            investment_service.investment_to_record(row), now, config
        )
        holdings.append(
            HoldingResponse(
                investment=investment_to_response(row),
                returns=ReturnsSnapshotResponse.model_validate(snapshot),
            )
        )
        total_invested += snapshot.principal
        total_current_value += snapshot.current_value

    return PortfolioResponse(
        holdings=holdings,
        total_invested=total_invested,
        total_current_value=total_current_value,
        total_returns=total_current_value - total_invested,
        total=len(holdings),
    )


@router.get("/{investment_id}", response_model=InvestmentResponse)
async def get_investment(investment_id: str, db: Session = Depends(get_db)):
    """Get an investment by ID."""
    return investment_to_response(_get_investment(db, investment_id))


@router.get("/{investment_id}/withdrawal-quote", response_model=WithdrawalQuoteResponse)
async def get_withdrawal_quote(
    investment_id: str,
    at: Optional[datetime] = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    """Quote what withdrawing this investment would pay, now or at ``at``."""
    row = _get_investment(db, investment_id)
    if row.status != InvestmentStatus.confirmed:
        raise HTTPException(status_code=400, detail="Investment is not active")

    valuation_time = investment_service.as_naive_utc(at) if at else now
    quote = compute_withdrawal_quote(
        investment_service.investment_to_record(row), valuation_time, config
    )
    return quote_to_response(quote)


@router.post(
    "/{investment_id}/withdraw",
    response_model=WithdrawalRequestResponse,
    status_code=201,
)
async def withdraw_investment(
    investment_id: str,
    body: WithdrawRequestBody = WithdrawRequestBody(),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    """Create a pending withdrawal request priced at the current instant."""
    row = _get_investment(db, investment_id)
    request = investment_service.request_withdrawal(
        db, row, now, config, reason=body.reason
    )
    return withdrawal_to_response(request)


@router.post(
    "/withdrawals/{request_id}/approve", response_model=WithdrawalRequestResponse
)
async def approve_withdrawal(
    request_id: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Approve a pending withdrawal; the investment becomes withdrawn."""
    request = _get_withdrawal_request(db, request_id)
    try:
        request = investment_service.review_withdrawal(db, request, True, now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return withdrawal_to_response(request)


@router.post(
    "/withdrawals/{request_id}/reject", response_model=WithdrawalRequestResponse
)
async def reject_withdrawal(
    request_id: str,
    review: WithdrawalReview = WithdrawalReview(),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Reject a pending withdrawal; the investment returns to confirmed."""
    request = _get_withdrawal_request(db, request_id)
    try:
        request = investment_service.review_withdrawal(
            db,
            request,
            False,
            now,
            rejection_reason=review.rejection_reason,
            rejection_comment=review.rejection_comment,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return withdrawal_to_response(request)
