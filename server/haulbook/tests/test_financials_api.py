from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from haulbook.auth import create_access_token
from haulbook.db import Base, get_db
from haulbook.main import app
from haulbook.models import BusinessExpense, Order, Tenant, Trip, TripExpense, User


def build_client() -> TestClient:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestingSessionLocal() as db:
        db.add_all([Tenant(id=1, name="Acme Hauling"), Tenant(id=2, name="Other Carrier")])
        db.add(User(id=1, tenant_id=1, email="owner@haulbook.test", role="owner", is_active=True))
        db.flush()
        trip = Trip(tenant_id=1, trip_number="TRIP-1", status="completed", start_date=date(2025, 9, 2))
        db.add(trip)
        db.flush()
        db.add_all(
            [
                Order(
                    tenant_id=1,
                    status="delivered",
                    revenue=Decimal("1000.00"),
                    carrier_pay=Decimal("700.00"),
                    distance_miles=Decimal("500.0"),
                    delivered_at=date(2025, 9, 5),
                ),
                Order(
                    tenant_id=1,
                    status="invoiced",
                    revenue=Decimal("2000.00"),
                    carrier_pay=Decimal("1200.00"),
                    distance_miles=Decimal("800.0"),
                    delivered_at=date(2025, 9, 20),
                    invoice_date=date(2025, 9, 21),
                ),
                Order(
                    tenant_id=2,
                    status="delivered",
                    revenue=Decimal("8000.00"),
                    carrier_pay=Decimal("100.00"),
                    delivered_at=date(2025, 9, 6),
                ),
                TripExpense(tenant_id=1, trip_id=trip.id, category="tolls", amount=Decimal("150.00"), expense_date=date(2025, 9, 10)),
                BusinessExpense(
                    tenant_id=1,
                    name="Cargo insurance",
                    category="insurance",
                    recurrence="monthly",
                    amount=Decimal("608.75"),
                    effective_from=date(2025, 1, 1),
                ),
            ]
        )
        db.commit()

    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_db_override():
    yield
    app.dependency_overrides.pop(get_db, None)


def test_pnl_for_explicit_period():
    with build_client() as client:
        response = client.get("/api/financials/pnl?start=2025-09-01&end=2025-09-30")
        assert response.status_code == 200

        body = response.json()
        assert body["recognition_basis"] == "delivery"
        assert body["pnl"]["total_revenue"] == "3000.00"
        assert body["pnl"]["total_business_expenses"] == "600.00"
        assert body["pnl"]["net_profit"] == "350.00"
        assert body["pnl"]["net_margin_pct"] == "11.7"
        assert body["metrics"]["load_count"] == 2
        assert body["metrics"]["revenue_per_mile"] == "2.31"


def test_pnl_for_preset_period():
    with build_client() as client:
        response = client.get("/api/financials/pnl?preset=mtd&as_of=2025-09-15")
        assert response.status_code == 200

        body = response.json()
        assert body["period_start"] == "2025-09-01"
        assert body["period_end"] == "2025-09-15"
        assert body["pnl"]["total_revenue"] == "1000.00"


def test_pnl_invoice_basis():
    with build_client() as client:
        response = client.get("/api/financials/pnl?start=2025-09-01&end=2025-09-30&basis=invoice")
        assert response.status_code == 200
        assert response.json()["pnl"]["total_revenue"] == "2000.00"


@pytest.mark.parametrize(
    "query",
    [
        "preset=fortnight",
        "start=2025-09-01",
        "start=2025-09-01&end=2025-09-30&basis=created",
    ],
)
def test_pnl_rejects_bad_parameters(query):
    with build_client() as client:
        response = client.get(f"/api/financials/pnl?{query}")
        assert response.status_code == 400


def test_pnl_trend_returns_one_row_per_month():
    with build_client() as client:
        response = client.get("/api/financials/pnl/trend?months=3&as_of=2025-09-15")
        assert response.status_code == 200

        rows = response.json()
        assert [row["month_key"] for row in rows] == ["2025-07", "2025-08", "2025-09"]
        assert rows[-1]["month_label"] == "Sep 2025"
        assert rows[-1]["pnl"]["total_revenue"] == "3000.00"
        assert rows[0]["metrics"]["load_count"] == 0


def test_pnl_trend_validates_months():
    with build_client() as client:
        assert client.get("/api/financials/pnl/trend?months=0").status_code == 422
        assert client.get("/api/financials/pnl/trend?months=25").status_code == 422


def test_kpis_endpoint():
    with build_client() as client:
        response = client.get("/api/financials/kpis?start=2025-09-01&end=2025-09-30")
        assert response.status_code == 200

        body = response.json()
        assert body["order_count"] == 2
        assert body["completed_trip_count"] == 1
        assert body["kpis"]["total_expenses"] == "2050.00"
        assert body["kpis"]["net_profit"] == "950.00"
        assert body["expense_breakdown"][0]["category"] == "carrier_pay"


@pytest.mark.real_auth
def test_financials_require_bearer_token():
    with build_client() as client:
        assert client.get("/api/financials/pnl?preset=mtd").status_code == 401

        token = create_access_token({"sub": "1"})
        response = client.get(
            "/api/financials/pnl?start=2025-09-01&end=2025-09-30",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 200
        assert response.json()["pnl"]["total_revenue"] == "3000.00"

        bad = client.get("/api/financials/pnl?preset=mtd", headers={"Authorization": "Bearer not-a-token"})
        assert bad.status_code == 401
