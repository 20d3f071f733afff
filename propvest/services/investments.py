"""
Investment service.

Bridges ORM rows and the calculation engine: converts rows to engine
records, runs origination and withdrawal quoting, and persists the results.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from propvest.calculations.engine import EngineConfig, compute_withdrawal_quote
from propvest.calculations.origination import open_investment, transition
from propvest.calculations.rates import RateDefaults
from propvest.calculations.records import (
    AnnualTerms,
    BondTerms,
    EffectiveRates,
    GlobalInvestmentSettings,
    GraduatedPenalty,
    InvestmentRecord,
    InvestmentStatus,
    InvestmentType,
    ManagementFee,
    PropertyInvestmentTerms,
)
from propvest.calculations.withdrawal import WithdrawalQuote
from propvest.db.models import (
    Investment,
    InvestmentSettings,
    Property,
    WithdrawalRequest,
    WithdrawalRequestStatus,
)

logger = logging.getLogger(__name__)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC, the form stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def graduated_from_json(data: Optional[Iterable[dict]]) -> tuple:
    if not data:
        return ()
    tiers = [
        GraduatedPenalty(
            year=int(item["year"]),
            penalty_percentage=Decimal(str(item["penalty_percentage"])),
        )
        for item in data
    ]
    return tuple(sorted(tiers, key=lambda tier: tier.year))


def graduated_to_json(tiers: Iterable[GraduatedPenalty]) -> List[dict]:
    return [
        {"year": tier.year, "penalty_percentage": str(tier.penalty_percentage)}
        for tier in tiers
    ]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_active_settings(db: Session) -> Optional[InvestmentSettings]:
    """Return the active global settings row, if any."""
    return (
        db.query(InvestmentSettings)
        .filter(InvestmentSettings.is_active == True, InvestmentSettings.is_deleted == False)
        .order_by(InvestmentSettings.created_at.desc())
        .first()
    )


def ensure_default_settings(db: Session) -> InvestmentSettings:
    """Create the default global settings if none exist."""
    settings = get_active_settings(db)
    if settings is not None:
        return settings

    settings = InvestmentSettings(
        rental_yield_percentage=Decimal("8.00"),
        appreciation_rate_percentage=Decimal("5.00"),
        maturity_period_years=Decimal("3"),
        investment_duration_years=Decimal("5"),
        early_withdrawal_penalty_percentage=Decimal("15.00"),
        platform_fee_percentage=Decimal("2.00"),
        min_investment_amount=Decimal("1000.00"),
        max_investment_amount=Decimal("1000000.00"),
        is_active=True,
        description="Default investment settings",
    )
    db.add(settings)
    db.commit()
    db.refresh(settings)
    logger.info("Created default investment settings %s", settings.id)
    return settings


def settings_to_record(
    row: Optional[InvestmentSettings],
) -> Optional[GlobalInvestmentSettings]:
    if row is None:
        return None
    return GlobalInvestmentSettings(
        rental_yield_percentage=row.rental_yield_percentage,
        appreciation_rate_percentage=row.appreciation_rate_percentage,
        maturity_period_years=row.maturity_period_years,
        early_withdrawal_penalty_percentage=row.early_withdrawal_penalty_percentage,
        platform_fee_percentage=row.platform_fee_percentage,
        min_investment_amount=row.min_investment_amount,
        max_investment_amount=row.max_investment_amount,
        is_active=row.is_active,
    )


def property_terms_to_record(prop: Property) -> PropertyInvestmentTerms:
    return PropertyInvestmentTerms(
        rental_yield_rate=prop.rental_yield_rate,
        appreciation_rate=prop.appreciation_rate,
        locking_period_years=prop.locking_period_years,
        early_withdrawal_penalty_percentage=prop.early_withdrawal_penalty_percentage,
        graduated_penalties=graduated_from_json(prop.graduated_penalties) or None,
        management_fee_percentage=prop.management_fee_percentage,
        fee_deduction_type=prop.fee_deduction_type,
        bond_lock_in_years=prop.bond_lock_in_years,
    )


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


def investment_to_record(row: Investment) -> InvestmentRecord:
    """Convert a stored investment into the engine's frozen record."""
    if row.investment_type == InvestmentType.bond:
        terms = BondTerms(
            lock_in_end_date=row.lock_in_end_date,
            maturity_date=row.maturity_date,
            graduated_penalties=graduated_from_json(row.graduated_penalties),
        )
    else:
        terms = AnnualTerms(maturity_date=row.maturity_date)

    return InvestmentRecord(
        id=row.id,
        principal=row.principal,
        gross_amount=row.amount,
        terms=terms,
        rates=EffectiveRates(
            rental_yield=row.rental_yield_rate,
            appreciation=row.appreciation_rate,
            penalty=row.penalty_rate,
            maturity_years=row.maturity_period_years,
        ),
        created_at=row.investment_date,
        management_fee=ManagementFee(
            fee_percentage=row.fee_percentage,
            fee_amount=row.fee_amount,
            net_investment=row.principal,
            deduction_type=row.fee_deduction_type,
        ),
        status=row.status,
    )


def create_investment(
    db: Session,
    investor_id: str,
    prop: Property,
    amount: Decimal,
    investment_type: InvestmentType,
    now: datetime,
    defaults: RateDefaults,
    config: EngineConfig,
) -> Investment:
    """Originate an investment and persist its frozen snapshot."""
    settings_row = get_active_settings(db)

    record = open_investment(
        amount=amount,
        created_at=now,
        investment_type=investment_type,
        property_terms=property_terms_to_record(prop),
        global_settings=settings_to_record(settings_row),
        defaults=defaults,
        year_length=config.year_length,
    )

    row = Investment(
        investor_id=investor_id,
        property_id=prop.id,
        investment_type=record.investment_type,
        status=record.status,
        amount=record.gross_amount,
        principal=record.principal,
        fee_percentage=record.management_fee.fee_percentage,
        fee_amount=record.management_fee.fee_amount,
        fee_deduction_type=record.management_fee.deduction_type,
        rental_yield_rate=record.rates.rental_yield,
        appreciation_rate=record.rates.appreciation,
        penalty_rate=record.rates.penalty,
        maturity_period_years=record.rates.maturity_years,
        graduated_penalties=graduated_to_json(record.terms.graduated_penalties),
        investment_date=record.created_at,
        lock_in_end_date=record.lock_in_end_date,
        maturity_date=record.maturity_date,
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info(
        "Investment created: investor %s, property %s, amount %s",
        investor_id,
        prop.id,
        record.gross_amount,
    )
    return row


def request_withdrawal(
    db: Session,
    row: Investment,
    now: datetime,
    config: EngineConfig,
    reason: Optional[str] = None,
) -> WithdrawalRequest:
    """
    Quote the investment at ``now`` and record a pending withdrawal request.

    Raises:
        InvalidStatusTransitionError: investment is not confirmed
    """
    record = investment_to_record(row)
    updated = transition(record, InvestmentStatus.withdrawal_requested)
    quote: WithdrawalQuote = compute_withdrawal_quote(record, now, config)

    request = WithdrawalRequest(
        investment_id=row.id,
        investor_id=row.investor_id,
        regime=quote.regime.value,
        principal_amount=quote.principal,
        rental_yield_earned=quote.rental_yield_earned,
        appreciation_gain=quote.appreciation_gain,
        penalty_amount=quote.penalty_amount,
        fee_deducted=quote.fee_deducted,
        amount=quote.net_payable,
        reason=reason,
        requested_at=now,
    )
    row.status = updated.status
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info(
        "Withdrawal requested: investment %s, regime %s, net payable %s",
        row.id,
        quote.regime.value,
        quote.net_payable,
    )
    return request


def review_withdrawal(
    db: Session,
    request: WithdrawalRequest,
    approve: bool,
    now: datetime,
    rejection_reason: Optional[str] = None,
    rejection_comment: Optional[str] = None,
) -> WithdrawalRequest:
    """
    Approve or reject a pending request.

    Approval marks the investment withdrawn; rejection returns it to confirmed.
    """
    if request.status != WithdrawalRequestStatus.pending:
        raise ValueError(f"Withdrawal request already {request.status.value}")

    row = request.investment
    record = investment_to_record(row)

    if approve:
        updated = transition(record, InvestmentStatus.withdrawn)
        request.status = WithdrawalRequestStatus.approved
        row.exit_date = now
    else:
        updated = transition(record, InvestmentStatus.confirmed)
        request.status = WithdrawalRequestStatus.rejected
        request.rejection_reason = rejection_reason
        request.rejection_comment = rejection_comment

    row.status = updated.status
    request.reviewed_at = now
    db.commit()
    db.refresh(request)

    logger.info(
        "Withdrawal request %s %s", request.id, request.status.value
    )
    return request
