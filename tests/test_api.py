"""
Tests for calculation, investment, property and settings API endpoints.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from propvest.main import app
from propvest.api.dependencies import get_now, get_rate_defaults
from propvest.calculations.rates import RateDefaults
from propvest.calculations.records import FeeDeductionType
from propvest.db.models import Investment, InvestmentSettings, Property, WithdrawalRequest

# Database setup is handled by conftest.py

INVESTED_AT = datetime(2025, 1, 1)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def clock():
    """Controllable server clock."""
    state = {"now": INVESTED_AT}
    app.dependency_overrides[get_now] = lambda: state["now"]
    yield state
    app.dependency_overrides.pop(get_now, None)


@pytest.fixture
def global_settings(db_session):
    """Active global settings: 8% yield, 5% appreciation, 3 years, 15% penalty, 2% platform fee."""
    settings = InvestmentSettings(
        rental_yield_percentage=Decimal("8"),
        appreciation_rate_percentage=Decimal("5"),
        maturity_period_years=Decimal("3"),
        investment_duration_years=Decimal("5"),
        early_withdrawal_penalty_percentage=Decimal("15"),
        platform_fee_percentage=Decimal("2"),
        min_investment_amount=Decimal("1000"),
        max_investment_amount=Decimal("1000000"),
        is_active=True,
    )
    db_session.add(settings)
    db_session.commit()
    db_session.refresh(settings)
    return settings


@pytest.fixture
def test_property(db_session):
    """Create a test property with no overrides."""
    prop = Property(name="Test Tower", status="active")
    db_session.add(prop)
    db_session.commit()
    db_session.refresh(prop)
    return prop


@pytest.fixture
def investment(client, clock, global_settings, test_property):
    """Open a 10,000 investment on 2025-01-01."""
    response = client.post(
        "/api/investments/",
        json={
            "investor_id": "investor-1",
            "property_id": test_property.id,
            "amount": "10000",
        },
    )
    assert response.status_code == 201
    return response.json()


REFERENCE_RECORD = {
    "principal": "50000",
    "rental_yield_rate": "8",
    "appreciation_rate": "5",
    "penalty_rate": "15",
    "maturity_period_years": "3",
    "created_at": "2025-01-01T00:00:00",
    "maturity_date": "2028-01-01T00:00:00",
}


class TestHealthCheck:
    """Test health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCalculationEndpoints:
    """Test stateless calculation endpoints."""

    def test_withdrawal_quote_early(self, client):
        response = client.post(
            "/api/calculate/withdrawal-quote",
            json={"investment": REFERENCE_RECORD, "now": "2026-07-02T12:00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["regime"] == "early"
        assert Decimal(data["rental_yield_earned"]) == Decimal("6000")
        assert Decimal(data["penalty_amount"]) == Decimal("7500")
        assert Decimal(data["net_payable"]) == Decimal("48500")

    def test_withdrawal_quote_mature(self, client):
        response = client.post(
            "/api/calculate/withdrawal-quote",
            json={"investment": REFERENCE_RECORD, "now": "2029-12-31T00:00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["regime"] == "mature"
        assert Decimal(data["appreciation_gain"]) == Decimal("5125")
        assert Decimal(data["net_payable"]) == Decimal("67125")

    def test_unrealized_returns_exclude_penalty(self, client):
        response = client.post(
            "/api/calculate/returns",
            json={"investment": REFERENCE_RECORD, "now": "2026-07-02T12:00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["current_value"]) == Decimal("56000")
        assert data["is_after_maturity"] is False

    def test_timezone_aware_input(self, client):
        record = dict(
            REFERENCE_RECORD,
            created_at="2025-01-01T03:00:00+03:00",
            maturity_date="2028-01-01T03:00:00+03:00",
        )
        response = client.post(
            "/api/calculate/withdrawal-quote",
            json={"investment": record, "now": "2026-07-02T12:00:00Z"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["net_payable"]) == Decimal("48500")

    def test_bond_graduated_penalty(self, client):
        record = dict(
            REFERENCE_RECORD,
            investment_type="bond",
            lock_in_end_date="2026-01-01T00:00:00",
            graduated_penalties=[{"year": 1, "penalty_percentage": "10"}],
        )
        response = client.post(
            "/api/calculate/withdrawal-quote",
            json={"investment": record, "now": "2025-07-02T12:00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["penalty_year"] == 1
        assert Decimal(data["penalty_amount"]) == Decimal("5000")

    def test_invalid_principal(self, client):
        record = dict(REFERENCE_RECORD, principal="0")
        response = client.post(
            "/api/calculate/withdrawal-quote",
            json={"investment": record, "now": "2026-01-01T00:00:00"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPrincipalError"

    def test_negative_holding_period(self, client):
        response = client.post(
            "/api/calculate/returns",
            json={"investment": REFERENCE_RECORD, "now": "2024-12-31T00:00:00"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "NegativeHoldingPeriodError"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("appreciation_rate", "-150"),
            ("rental_yield_rate", "-1"),
            ("penalty_rate", "101"),
        ],
    )
    def test_out_of_range_rate_rejected(self, client, field, value):
        record = dict(REFERENCE_RECORD, **{field: value})
        response = client.post(
            "/api/calculate/returns",
            json={"investment": record, "now": "2029-07-02T12:00:00"},
        )
        assert response.status_code == 422

    def test_projection_uses_active_settings(self, client, global_settings):
        response = client.post(
            "/api/calculate/projection",
            json={"investment_amount": "50000"},
        )
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["rental_yield"]) == Decimal("12000")
        assert Decimal(data["projected_value"]) == Decimal("62000")
        assert Decimal(data["early_withdrawal_penalty"]) == Decimal("7500")

    def test_projection_without_any_configuration(self, client):
        app.dependency_overrides[get_rate_defaults] = lambda: RateDefaults(
            rental_yield=None, appreciation=None, penalty=None, maturity_years=None
        )
        try:
            response = client.post(
                "/api/calculate/projection", json={"investment_amount": "50000"}
            )
        finally:
            app.dependency_overrides.pop(get_rate_defaults, None)
        assert response.status_code == 500
        assert response.json()["error"] == "MissingRateConfigurationError"


class TestInvestmentEndpoints:
    """Test investment origination and withdrawal."""

    def test_create_investment_freezes_terms(self, investment):
        assert investment["status"] == "confirmed"
        assert Decimal(investment["amount"]) == Decimal("10000")
        assert Decimal(investment["fee_amount"]) == Decimal("0")
        assert Decimal(investment["principal"]) == Decimal("10000")
        assert Decimal(investment["rental_yield_rate"]) == Decimal("8")
        assert investment["maturity_date"] == "2028-01-01T00:00:00"
        assert investment["lock_in_end_date"] == investment["maturity_date"]

    def test_create_investment_uses_property_override(
        self, client, clock, global_settings, db_session, test_property
    ):
        test_property.rental_yield_rate = Decimal("10")
        test_property.fee_deduction_type = FeeDeductionType.recurring
        db_session.commit()

        response = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "10000",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["rental_yield_rate"]) == Decimal("10")
        assert data["fee_deduction_type"] == "recurring"
        assert Decimal(data["principal"]) == Decimal("10000")

    def test_platform_fee_not_charged_on_principal(self, investment, global_settings):
        assert global_settings.platform_fee_percentage == Decimal("2")
        assert Decimal(investment["fee_percentage"]) == Decimal("0")
        assert Decimal(investment["principal"]) == Decimal(investment["amount"])

    def test_create_investment_property_upfront_fee(
        self, client, clock, global_settings, db_session, test_property
    ):
        test_property.management_fee_percentage = Decimal("2")
        db_session.commit()

        response = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "10000",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["fee_deduction_type"] == "upfront"
        assert Decimal(data["fee_amount"]) == Decimal("200")
        assert Decimal(data["principal"]) == Decimal("9800")

    def test_bond_graduated_schedule_survives_persistence(
        self, client, clock, global_settings, db_session, test_property
    ):
        test_property.bond_lock_in_years = Decimal("3")
        test_property.graduated_penalties = [
            {"year": 2, "penalty_percentage": "5"},
            {"year": 1, "penalty_percentage": "10"},
        ]
        db_session.commit()

        created = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "10000",
                "investment_type": "bond",
            },
        ).json()

        # Later property edits must not reach the stored schedule
        test_property.graduated_penalties = [{"year": 2, "penalty_percentage": "50"}]
        db_session.commit()

        clock["now"] = datetime(2026, 7, 2, 12)
        response = client.get(f"/api/investments/{created['id']}/withdrawal-quote")
        assert response.status_code == 200
        data = response.json()
        assert data["regime"] == "early"
        assert data["penalty_year"] == 2
        assert Decimal(data["penalty_percentage"]) == Decimal("5")
        assert Decimal(data["penalty_amount"]) == Decimal("500")
        # 10,000 + 1,200 yield - 500 penalty
        assert Decimal(data["net_payable"]) == Decimal("10700")

        request = client.post(f"/api/investments/{created['id']}/withdraw", json={}).json()
        assert Decimal(request["amount"]) == Decimal("10700")

    def test_create_bond_investment(
        self, client, clock, global_settings, db_session, test_property
    ):
        test_property.bond_lock_in_years = Decimal("1")
        db_session.commit()

        response = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "10000",
                "investment_type": "bond",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["investment_type"] == "bond"
        assert data["lock_in_end_date"] == "2026-01-01T00:00:00"
        assert data["maturity_date"] == "2028-01-01T00:00:00"

    def test_create_investment_below_minimum(
        self, client, clock, global_settings, test_property
    ):
        response = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "500",
            },
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvestmentLimitError"

    def test_create_investment_property_not_found(self, client, clock):
        response = client.post(
            "/api/investments/",
            json={"investor_id": "investor-1", "property_id": "missing", "amount": "5000"},
        )
        assert response.status_code == 404

    def test_create_investment_closed_property(
        self, client, clock, db_session, test_property
    ):
        test_property.status = "closed"
        db_session.commit()
        response = client.post(
            "/api/investments/",
            json={
                "investor_id": "investor-1",
                "property_id": test_property.id,
                "amount": "5000",
            },
        )
        assert response.status_code == 400

    def test_settings_change_does_not_reprice_existing(self, client, clock, investment):
        response = client.put("/api/settings/", json={"rental_yield_percentage": "12"})
        assert response.status_code == 200
        assert Decimal(response.json()["rental_yield_percentage"]) == Decimal("12")

        response = client.get(
            f"/api/investments/{investment['id']}/withdrawal-quote",
            params={"at": "2026-07-02T12:00:00"},
        )
        assert response.status_code == 200
        data = response.json()
        # 10,000 principal at the frozen 8%: yield 1,200, penalty 1,500
        assert Decimal(data["rental_yield_earned"]) == Decimal("1200")
        assert Decimal(data["penalty_amount"]) == Decimal("1500")
        assert Decimal(data["net_payable"]) == Decimal("9700")

    def test_portfolio_lists_unrealized_returns(self, client, clock, investment):
        clock["now"] = datetime(2026, 7, 2, 12)
        response = client.get("/api/investments/", params={"investor_id": "investor-1"})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        holding = data["holdings"][0]
        assert holding["investment"]["id"] == investment["id"]
        assert Decimal(holding["returns"]["rental_yield_earned"]) == Decimal("1200")
        assert Decimal(data["total_current_value"]) == Decimal("11200")
        assert Decimal(data["total_returns"]) == Decimal("1200")

    def test_withdraw_creates_pending_request(self, client, clock, investment, db_session):
        clock["now"] = datetime(2026, 7, 2, 12)
        response = client.post(
            f"/api/investments/{investment['id']}/withdraw",
            json={"reason": "Need liquidity"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["regime"] == "early"
        assert Decimal(data["amount"]) == Decimal("9700")

        row = db_session.query(Investment).filter(Investment.id == investment["id"]).first()
        assert row.status.value == "withdrawal_requested"

    def test_withdraw_twice_rejected(self, client, clock, investment):
        client.post(f"/api/investments/{investment['id']}/withdraw", json={})
        response = client.post(f"/api/investments/{investment['id']}/withdraw", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStatusTransitionError"

    def test_quote_refused_for_inactive_investment(self, client, clock, investment):
        client.post(f"/api/investments/{investment['id']}/withdraw", json={})
        response = client.get(f"/api/investments/{investment['id']}/withdrawal-quote")
        assert response.status_code == 400

    def test_approve_withdrawal(self, client, clock, investment):
        request = client.post(
            f"/api/investments/{investment['id']}/withdraw", json={}
        ).json()
        response = client.post(f"/api/investments/withdrawals/{request['id']}/approve")
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        detail = client.get(f"/api/investments/{investment['id']}").json()
        assert detail["status"] == "withdrawn"

        again = client.post(f"/api/investments/withdrawals/{request['id']}/approve")
        assert again.status_code == 400

    def test_reject_withdrawal(self, client, clock, investment):
        request = client.post(
            f"/api/investments/{investment['id']}/withdraw", json={}
        ).json()
        response = client.post(
            f"/api/investments/withdrawals/{request['id']}/reject",
            json={"rejection_reason": "maturity_period_active"},
        )
        assert response.status_code == 200
        assert response.json()["rejection_reason"] == "maturity_period_active"

        detail = client.get(f"/api/investments/{investment['id']}").json()
        assert detail["status"] == "confirmed"

    def test_withdrawal_request_not_found(self, client):
        response = client.post("/api/investments/withdrawals/missing/approve")
        assert response.status_code == 404


class TestPropertyEndpoints:
    """Test property term overrides."""

    def test_create_property_with_overrides(self, client):
        response = client.post(
            "/api/properties/",
            json={
                "name": "Harbour View",
                "rental_yield_rate": "9",
                "graduated_penalties": [
                    {"year": 2, "penalty_percentage": "5"},
                    {"year": 1, "penalty_percentage": "10"},
                ],
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["rental_yield_rate"]) == Decimal("9")
        assert data["appreciation_rate"] is None
        assert [t["year"] for t in data["graduated_penalties"]] == [1, 2]

    def test_clear_override(self, client, db_session, test_property):
        test_property.rental_yield_rate = Decimal("9")
        db_session.commit()

        response = client.put(
            f"/api/properties/{test_property.id}", json={"rental_yield_rate": None}
        )
        assert response.status_code == 200
        assert response.json()["rental_yield_rate"] is None

    def test_get_property_not_found(self, client):
        response = client.get("/api/properties/nonexistent-id")
        assert response.status_code == 404

    def test_delete_property(self, client, test_property):
        response = client.delete(f"/api/properties/{test_property.id}")
        assert response.status_code == 200
        assert client.get(f"/api/properties/{test_property.id}").status_code == 404


class TestSettingsEndpoints:
    """Test global settings."""

    def test_defaults_created_on_first_read(self, client):
        response = client.get("/api/settings/")
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["rental_yield_percentage"]) == Decimal("8")
        assert Decimal(data["early_withdrawal_penalty_percentage"]) == Decimal("15")
        assert data["is_active"] is True


class TestDatabase:
    """Test store-level constraints."""

    def test_withdrawal_request_requires_investment(self, db_session):
        db_session.add(
            WithdrawalRequest(
                investment_id="missing",
                investor_id="investor-1",
                regime="early",
                principal_amount=Decimal("1000"),
                amount=Decimal("1000"),
                requested_at=INVESTED_AT,
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
