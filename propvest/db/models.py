"""
SQLAlchemy ORM models for investments and their configuration.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Numeric,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid
import enum

from propvest.calculations.records import (
    FeeDeductionType,
    InvestmentStatus,
    InvestmentType,
)


class WithdrawalRequestStatus(str, enum.Enum):
    """Withdrawal request review status."""
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


Base = declarative_base()

Money = Numeric(18, 2, asdecimal=True)
Rate = Numeric(9, 4, asdecimal=True)


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)


class Property(AuditMixin, Base):
    """Property offered for investment, with optional term overrides."""

    __tablename__ = "properties"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    status = Column(String(50), default="active", nullable=False)
    min_investment = Column(Money, nullable=True)

    # Investment term overrides (NULL = use global setting)
    rental_yield_rate = Column(Rate, nullable=True)
    appreciation_rate = Column(Rate, nullable=True)
    locking_period_years = Column(Rate, nullable=True)
    early_withdrawal_penalty_percentage = Column(Rate, nullable=True)
    bond_lock_in_years = Column(Rate, nullable=True)
    graduated_penalties = Column(JSON, nullable=True)  # [{"year": 1, "penalty_percentage": "10"}]

    # Management fee overrides
    management_fee_percentage = Column(Rate, nullable=True)
    fee_deduction_type = Column(SQLEnum(FeeDeductionType), nullable=True)

    investments = relationship(
        "Investment",
        back_populates="property",
        lazy="dynamic",
    )


class InvestmentSettings(AuditMixin, Base):
    """Platform-wide investment defaults. One active row at a time."""

    __tablename__ = "investment_settings"

    id = Column(String, primary_key=True, default=generate_uuid)

    # Rental and returns
    rental_yield_percentage = Column(Rate, nullable=False, default=8)
    appreciation_rate_percentage = Column(Rate, nullable=False, default=5)

    # Time periods
    maturity_period_years = Column(Rate, nullable=False, default=3)
    investment_duration_years = Column(Rate, nullable=False, default=5)

    # Penalties and fees
    early_withdrawal_penalty_percentage = Column(Rate, nullable=False, default=15)
    platform_fee_percentage = Column(Rate, nullable=False, default=2)

    # Investment limits
    min_investment_amount = Column(Money, nullable=False, default=1000)
    max_investment_amount = Column(Money, nullable=False, default=1000000)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    description = Column(Text)


class Investment(AuditMixin, Base):
    """An investor's holding with the terms frozen at purchase time."""

    __tablename__ = "investments"

    id = Column(String, primary_key=True, default=generate_uuid)
    investor_id = Column(String(255), nullable=False, index=True)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)

    investment_type = Column(
        SQLEnum(InvestmentType), default=InvestmentType.simple_annual, nullable=False
    )
    status = Column(
        SQLEnum(InvestmentStatus), default=InvestmentStatus.confirmed, nullable=False
    )

    # Amounts
    amount = Column(Money, nullable=False)  # Gross amount paid
    principal = Column(Money, nullable=False)  # Net of upfront fee

    # Management fee snapshot
    fee_percentage = Column(Rate, nullable=False, default=0)
    fee_amount = Column(Money, nullable=False, default=0)
    fee_deduction_type = Column(
        SQLEnum(FeeDeductionType), default=FeeDeductionType.upfront, nullable=False
    )

    # Rate snapshot
    rental_yield_rate = Column(Rate, nullable=False)
    appreciation_rate = Column(Rate, nullable=False)
    penalty_rate = Column(Rate, nullable=False)
    maturity_period_years = Column(Rate, nullable=False)
    graduated_penalties = Column(JSON, nullable=True)

    # Dates
    investment_date = Column(DateTime, nullable=False)
    lock_in_end_date = Column(DateTime, nullable=False)
    maturity_date = Column(DateTime, nullable=False)
    exit_date = Column(DateTime, nullable=True)

    property = relationship("Property", back_populates="investments")
    withdrawal_requests = relationship(
        "WithdrawalRequest",
        back_populates="investment",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )


class WithdrawalRequest(AuditMixin, Base):
    """A pending or reviewed request to withdraw an investment."""

    __tablename__ = "withdrawal_requests"

    id = Column(String, primary_key=True, default=generate_uuid)
    investment_id = Column(String, ForeignKey("investments.id"), nullable=False, index=True)
    investor_id = Column(String(255), nullable=False, index=True)

    status = Column(
        SQLEnum(WithdrawalRequestStatus),
        default=WithdrawalRequestStatus.pending,
        nullable=False,
    )
    regime = Column(String(20), nullable=False)

    # Quote at request time
    principal_amount = Column(Money, nullable=False)
    rental_yield_earned = Column(Money, nullable=False, default=0)
    appreciation_gain = Column(Money, nullable=False, default=0)
    penalty_amount = Column(Money, nullable=False, default=0)
    fee_deducted = Column(Money, nullable=False, default=0)
    amount = Column(Money, nullable=False)  # Net payable

    reason = Column(Text)
    requested_at = Column(DateTime, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(50), nullable=True)
    rejection_comment = Column(Text)

    investment = relationship("Investment", back_populates="withdrawal_requests")
