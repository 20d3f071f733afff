"""
Property API endpoints.

Properties carry optional investment-term overrides. A NULL override defers
to the global settings. Changing a property never affects investments that
already exist: their rates were frozen when they were opened.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from sqlalchemy.orm import Session

from propvest.api.calculations import GraduatedPenaltySchema
from propvest.calculations.records import FeeDeductionType
from propvest.db.database import get_db
from propvest.db.models import Property

router = APIRouter()


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    name: str
    status: str = "active"
    min_investment: Optional[Decimal] = None
    rental_yield_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    appreciation_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    locking_period_years: Optional[Decimal] = Field(default=None, gt=0)
    early_withdrawal_penalty_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    bond_lock_in_years: Optional[Decimal] = Field(default=None, gt=0)
    graduated_penalties: Optional[List[GraduatedPenaltySchema]] = None
    management_fee_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    fee_deduction_type: Optional[FeeDeductionType] = None


class PropertyUpdate(BaseModel):
    """Schema for updating a property."""

    name: Optional[str] = None
    status: Optional[str] = None
    min_investment: Optional[Decimal] = None
    rental_yield_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    appreciation_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    locking_period_years: Optional[Decimal] = Field(default=None, gt=0)
    early_withdrawal_penalty_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    bond_lock_in_years: Optional[Decimal] = Field(default=None, gt=0)
    graduated_penalties: Optional[List[GraduatedPenaltySchema]] = None
    management_fee_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    fee_deduction_type: Optional[FeeDeductionType] = None


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    name: str
    status: str
    min_investment: Optional[Decimal]
    rental_yield_rate: Optional[Decimal]
    appreciation_rate: Optional[Decimal]
    locking_period_years: Optional[Decimal]
    early_withdrawal_penalty_percentage: Optional[Decimal]
    bond_lock_in_years: Optional[Decimal]
    graduated_penalties: Optional[List[GraduatedPenaltySchema]]
    management_fee_percentage: Optional[Decimal]
    fee_deduction_type: Optional[FeeDeductionType]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


def _penalties_to_json(tiers: Optional[List[GraduatedPenaltySchema]]):
    if tiers is None:
        return None
    return [
        {"year": t.year, "penalty_percentage": str(t.penalty_percentage)}
        for t in sorted(tiers, key=lambda t: t.year)
    ]


def property_to_response(prop: Property) -> PropertyResponse:
    """Convert Property model to response schema."""
    return PropertyResponse(
        id=prop.id,
        name=prop.name,
        status=prop.status,
        min_investment=prop.min_investment,
        rental_yield_rate=prop.rental_yield_rate,
        appreciation_rate=prop.appreciation_rate,
        locking_period_years=prop.locking_period_years,
        early_withdrawal_penalty_percentage=prop.early_withdrawal_penalty_percentage,
        bond_lock_in_years=prop.bond_lock_in_years,
        graduated_penalties=prop.graduated_penalties,
        management_fee_percentage=prop.management_fee_percentage,
        fee_deduction_type=prop.fee_deduction_type,
        created_at=prop.created_at.isoformat() if prop.created_at else None,
        updated_at=prop.updated_at.isoformat() if prop.updated_at else None,
    )


def _get_property(db: Session, property_id: str) -> Property:
    db_property = (
        db.query(Property)
        .filter(Property.id == property_id, Property.is_deleted == False)
        .first()
    )
    if not db_property:
        raise HTTPException(status_code=404, detail="Property not found")
    return db_property


@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List all properties with optional status filtering."""
    query = db.query(Property).filter(Property.is_deleted == False)

    if status:
        query = query.filter(Property.status == status)

    total = query.count()
    properties = query.offset(skip).limit(limit).all()

    return PropertyListResponse(
        properties=[property_to_response(p) for p in properties],
        total=total,
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
):
    """Create a new property."""
    data = property_data.model_dump(exclude={"graduated_penalties"})
    db_property = Property(
        **data,
        graduated_penalties=_penalties_to_json(property_data.graduated_penalties),
    )

    db.add(db_property)
    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Get a property by ID."""
    return property_to_response(_get_property(db, property_id))


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    db: Session = Depends(get_db),
):
    """Update a property's details or term overrides."""
    db_property = _get_property(db, property_id)

    # Update only provided fields; an explicit null clears an override
    update_data = property_data.model_dump(exclude_unset=True)
    if "graduated_penalties" in update_data:
        update_data["graduated_penalties"] = _penalties_to_json(
            property_data.graduated_penalties
        )
    for field, value in update_data.items():
        setattr(db_property, field, value)

    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property)


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a property."""
    db_property = _get_property(db, property_id)

    # Soft delete
    db_property.is_deleted = True
    db.commit()

    return {"deleted": True, "id": property_id}
