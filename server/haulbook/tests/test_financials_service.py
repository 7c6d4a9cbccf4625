import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from haulbook.db import Base
from haulbook.financials.service import SqlPeriodDataSource, get_kpi_report, get_pnl_report, get_pnl_trend
from haulbook.models import BusinessExpense, FuelEntry, Order, Tenant, Trip, TripExpense, Truck


def create_session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def seed(session: Session) -> None:
    session.add_all([Tenant(id=1, name="Acme Hauling"), Tenant(id=2, name="Other Carrier")])
    truck = Truck(tenant_id=1, unit_number="T-101")
    session.add(truck)
    session.flush()

    trip = Trip(
        tenant_id=1,
        trip_number="TRIP-1",
        truck_id=truck.id,
        status="completed",
        start_date=date(2025, 9, 3),
        driver_pay=Decimal("450.00"),
    )
    session.add(trip)
    session.flush()

    session.add_all(
        [
            Order(
                tenant_id=1,
                trip_id=trip.id,
                status="delivered",
                revenue=Decimal("1000.00"),
                carrier_pay=Decimal("700.00"),
                broker_fee=Decimal("50.00"),
                distance_miles=Decimal("500.0"),
                delivered_at=date(2025, 9, 5),
                invoice_date=date(2025, 10, 2),
            ),
            Order(
                tenant_id=1,
                trip_id=trip.id,
                status="invoiced",
                revenue=Decimal("2000.00"),
                carrier_pay=Decimal("1200.00"),
                distance_miles=Decimal("800.0"),
                delivered_at=date(2025, 9, 20),
                invoice_date=date(2025, 9, 22),
            ),
            Order(
                tenant_id=1,
                status="cancelled",
                revenue=Decimal("5000.00"),
                carrier_pay=Decimal("4000.00"),
                delivered_at=date(2025, 9, 12),
            ),
            Order(
                tenant_id=1,
                status="delivered",
                revenue=Decimal("750.00"),
                carrier_pay=Decimal("500.00"),
                delivered_at=date(2025, 8, 30),
            ),
            Order(
                tenant_id=2,
                status="delivered",
                revenue=Decimal("9999.00"),
                carrier_pay=Decimal("1.00"),
                delivered_at=date(2025, 9, 10),
            ),
        ]
    )
    session.add_all(
        [
            TripExpense(tenant_id=1, trip_id=trip.id, category="tolls", amount=Decimal("150.00"), expense_date=date(2025, 9, 10)),
            TripExpense(tenant_id=1, trip_id=trip.id, category="fuel", amount=Decimal("90.00"), expense_date=date(2025, 8, 31)),
        ]
    )
    session.add_all(
        [
            BusinessExpense(
                tenant_id=1,
                name="Cargo insurance",
                category="insurance",
                recurrence="monthly",
                amount=Decimal("608.75"),
                effective_from=date(2025, 1, 1),
            ),
            BusinessExpense(
                tenant_id=1,
                name="Old lease",
                category="truck_lease",
                recurrence="monthly",
                amount=Decimal("900.00"),
                effective_from=date(2024, 1, 1),
                effective_to=date(2025, 6, 30),
            ),
            BusinessExpense(
                tenant_id=2,
                name="Other insurance",
                category="insurance",
                recurrence="monthly",
                amount=Decimal("5000.00"),
                effective_from=date(2025, 1, 1),
            ),
        ]
    )
    session.add(
        FuelEntry(tenant_id=1, truck_id=truck.id, entry_date=date(2025, 9, 4), gallons=Decimal("65.000"), total_cost=Decimal("260.00"))
    )
    session.commit()


def test_period_source_filters_tenant_status_and_window():
    with create_session() as session:
        seed(session)
        pnl_input = SqlPeriodDataSource(session).fetch_period_data(1, date(2025, 9, 1), date(2025, 9, 30))

        assert [order.revenue for order in pnl_input.orders] == [Decimal("1000.00"), Decimal("2000.00")]
        assert len(pnl_input.trip_expenses) == 1
        assert [expense.category for expense in pnl_input.business_expenses] == ["insurance"]
        assert len(pnl_input.fuel_entries) == 1
        assert pnl_input.recognition_basis == "delivery"


def test_pnl_report_for_tenant_month():
    with create_session() as session:
        seed(session)
        report = get_pnl_report(session, 1, date(2025, 9, 1), date(2025, 9, 30))

        pnl = report["pnl"]
        assert report["recognition_basis"] == "delivery"
        assert pnl["total_revenue"] == Decimal("3000.00")
        assert pnl["total_carrier_pay"] == Decimal("1900.00")
        assert pnl["total_trip_expenses"] == Decimal("150.00")
        assert pnl["total_business_expenses"] == Decimal("600.00")
        assert pnl["net_profit"] == Decimal("350.00")
        assert pnl["total_fuel_cost"] == Decimal("260.00")
        assert report["metrics"]["load_count"] == 2
        assert report["metrics"]["revenue_per_load"] == Decimal("1500.00")


def test_pnl_report_invoice_basis():
    with create_session() as session:
        seed(session)
        report = get_pnl_report(session, 1, date(2025, 9, 1), date(2025, 9, 30), basis="invoice")

        assert report["recognition_basis"] == "invoice"
        assert report["pnl"]["total_revenue"] == Decimal("2000.00")


def test_pnl_report_rejects_unknown_basis():
    with create_session() as session:
        with pytest.raises(ValueError):
            get_pnl_report(session, 1, date(2025, 9, 1), date(2025, 9, 30), basis="created")


def test_pnl_trend_covers_requested_months():
    with create_session() as session:
        seed(session)
        trend = get_pnl_trend(session, 1, months=2, as_of=date(2025, 9, 15))

        assert [row["month_key"] for row in trend] == ["2025-08", "2025-09"]
        assert trend[0]["pnl"]["total_revenue"] == Decimal("750.00")
        assert trend[0]["pnl"]["trip_expenses_by_category"] == {"fuel": Decimal("90.00")}
        assert trend[1]["pnl"]["total_revenue"] == Decimal("3000.00")


def test_pnl_trend_rejects_zero_months():
    with create_session() as session:
        with pytest.raises(ValueError):
            get_pnl_trend(session, 1, months=0, as_of=date(2025, 9, 15))


def test_kpi_report_aggregates_orders_and_trips():
    with create_session() as session:
        seed(session)
        report = get_kpi_report(session, 1, date(2025, 9, 1), date(2025, 9, 30))

        assert report["order_count"] == 2
        assert report["truck_count"] == 1
        assert report["completed_trip_count"] == 1
        kpis = report["kpis"]
        # 50 broker + 450 driver + 150 tolls + 1900 carrier pay
        assert kpis["total_expenses"] == Decimal("2550.00")
        assert kpis["net_profit"] == Decimal("450.00")
        assert kpis["revenue_per_mile"] == Decimal("2.31")
        assert kpis["revenue_per_truck"] == Decimal("3000.00")

        breakdown = report["expense_breakdown"]
        assert [row["category"] for row in breakdown] == ["carrier_pay", "driver_pay", "tolls", "broker_fees"]
        assert breakdown[0]["label"] == "Carrier Pay"


def test_pnl_report_includes_revenue_waterfall_and_fleet_metrics():
    with create_session() as session:
        seed(session)
        report = get_pnl_report(session, 1, date(2025, 9, 1), date(2025, 9, 30))

        pnl = report["pnl"]
        assert pnl["total_broker_fees"] == Decimal("50.00")
        assert pnl["total_local_fees"] == Decimal("0.00")
        assert pnl["clean_gross"] == Decimal("2950.00")
        assert pnl["total_driver_pay"] == Decimal("450.00")
        assert pnl["truck_gross"] == Decimal("2500.00")

        metrics = report["metrics"]
        assert metrics["truck_count"] == 1
        assert metrics["completed_trip_count"] == 1
        assert metrics["net_profit_per_truck"] == Decimal("350.00")
        assert metrics["overhead_per_trip"] == Decimal("600.00")
        assert metrics["appc"] == Decimal("1500.00")


def test_invalid_business_expenses_are_logged_and_skipped(caplog):
    with create_session() as session:
        seed(session)
        session.add_all(
            [
                BusinessExpense(
                    tenant_id=1,
                    name="Backdated permit",
                    category="permits",
                    recurrence="monthly",
                    amount=Decimal("250.00"),
                    effective_from=date(2025, 9, 20),
                    effective_to=date(2025, 9, 5),
                ),
                BusinessExpense(
                    tenant_id=1,
                    name="Weekly wash",
                    category="other",
                    recurrence="weekly",
                    amount=Decimal("40.00"),
                    effective_from=date(2025, 1, 1),
                ),
            ]
        )
        session.commit()

        with caplog.at_level(logging.WARNING, logger="haulbook.financials.service"):
            report = get_pnl_report(session, 1, date(2025, 9, 1), date(2025, 9, 30))

        assert report["pnl"]["total_business_expenses"] == Decimal("600.00")
        assert "Skipping 2 invalid business expense(s) for tenant_id=1" in caplog.text
