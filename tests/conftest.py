"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import datetime
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from propvest.main import app
from propvest.db.database import create_db_engine, get_db
# Import all models to ensure all tables are created
from propvest.db.models import (
    Base, Property, InvestmentSettings, Investment, WithdrawalRequest
)
from propvest.calculations.records import (
    AnnualTerms,
    EffectiveRates,
    InvestmentRecord,
)
from propvest.calculations.timing import STANDARD_YEAR, add_years


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_db_engine(
    SQLALCHEMY_DATABASE_URL,
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


INVESTMENT_DATE = datetime(2025, 1, 1)


def at_years(years, start=INVESTMENT_DATE, year_length=STANDARD_YEAR):
    """Instant ``years`` investment years after ``start``."""
    return add_years(start, Decimal(str(years)), year_length)


@pytest.fixture
def reference_investment():
    """
    50,000 principal, 8% rental yield, 5% appreciation, 3-year maturity,
    15% flat penalty, no management fee.
    """
    return InvestmentRecord(
        principal=Decimal("50000"),
        terms=AnnualTerms(maturity_date=at_years(3)),
        rates=EffectiveRates(
            rental_yield=Decimal("8"),
            appreciation=Decimal("5"),
            penalty=Decimal("15"),
            maturity_years=Decimal("3"),
        ),
        created_at=INVESTMENT_DATE,
    )
