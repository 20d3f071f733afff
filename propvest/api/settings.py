"""
Global investment settings API endpoints.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from propvest.db.database import get_db
from propvest.db.models import InvestmentSettings
from propvest.services.investments import ensure_default_settings

router = APIRouter()


class SettingsUpdate(BaseModel):
    """Schema for updating the active settings."""

    rental_yield_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    appreciation_rate_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    maturity_period_years: Optional[Decimal] = Field(default=None, gt=0)
    investment_duration_years: Optional[Decimal] = Field(default=None, gt=0)
    early_withdrawal_penalty_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    platform_fee_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    min_investment_amount: Optional[Decimal] = Field(default=None, gt=0)
    max_investment_amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None


class SettingsResponse(BaseModel):
    """Schema for the active settings."""

    id: str
    rental_yield_percentage: Decimal
    appreciation_rate_percentage: Decimal
    maturity_period_years: Decimal
    investment_duration_years: Decimal
    early_withdrawal_penalty_percentage: Decimal
    platform_fee_percentage: Decimal
    min_investment_amount: Decimal
    max_investment_amount: Decimal
    is_active: bool
    description: Optional[str] = None

    class Config:
        from_attributes = True


@router.get("/", response_model=SettingsResponse)
async def get_settings(db: Session = Depends(get_db)):
    """Get the active settings, creating the defaults on first use."""
    return SettingsResponse.model_validate(ensure_default_settings(db))


@router.put("/", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    db: Session = Depends(get_db),
):
    """
    Update the active settings.

    Only new investments see the change; existing investments keep the
    rates frozen at their creation.
    """
    settings: InvestmentSettings = ensure_default_settings(db)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(settings, field, value)

    db.commit()
    db.refresh(settings)
    return SettingsResponse.model_validate(settings)
