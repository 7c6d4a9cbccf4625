from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from haulbook.config import settings
from haulbook.financials.calculations import (
    RECOGNITION_BASES,
    BusinessExpenseRow,
    FuelEntryRow,
    OrderRow,
    PnLInput,
    TripExpenseRow,
    TripRow,
    calculate_monthly_trend,
    calculate_pnl,
    calculate_unit_metrics,
    is_valid_business_expense,
)
from haulbook.financials.kpis import KPIInput, calculate_expense_breakdown, calculate_kpis
from haulbook.models import BusinessExpense, FuelEntry, Order, Trip, TripExpense

logger = logging.getLogger(__name__)

EXCLUDED_ORDER_STATUSES = ("cancelled",)
EXCLUDED_TRIP_STATUSES = ("cancelled",)
COMPLETED_TRIP_STATUSES = ("completed",)
TRIP_EXPENSE_CATEGORIES = ("fuel", "tolls", "repairs", "lodging", "misc")


def _resolve_basis(basis: Optional[str]) -> str:
    resolved = basis or settings.DEFAULT_RECOGNITION_BASIS
    if resolved not in RECOGNITION_BASES:
        raise ValueError("Basis must be delivery or invoice.")
    return resolved


def _warn_invalid_business_expenses(tenant_id: int, rows: Iterable[BusinessExpenseRow]) -> None:
    bad = sum(1 for row in rows if not is_valid_business_expense(row))
    if bad:
        logger.warning("Skipping %s invalid business expense(s) for tenant_id=%s", bad, tenant_id)


class SqlPeriodDataSource:
    """Gathers the period rows the P&L engine needs for one tenant."""

    def __init__(self, db: Session, recognition_basis: Optional[str] = None):
        self.db = db
        self.recognition_basis = _resolve_basis(recognition_basis)

    def _recognition_column(self):
        if self.recognition_basis == "invoice":
            return Order.invoice_date
        return Order.delivered_at

    def fetch_period_data(self, tenant_id: int, period_start: date, period_end: date) -> PnLInput:
        recognized_on = self._recognition_column()
        orders = (
            self.db.query(
                Order.id,
                Order.revenue,
                Order.carrier_pay,
                Order.distance_miles,
                Order.status,
                Order.delivered_at,
                Order.invoice_date,
                Order.broker_fee,
                Order.local_fee,
            )
            .filter(Order.tenant_id == tenant_id)
            .filter(Order.status.notin_(EXCLUDED_ORDER_STATUSES))
            .filter(recognized_on >= period_start, recognized_on <= period_end)
            .order_by(Order.id.asc())
            .all()
        )

        trip_expenses = (
            self.db.query(TripExpense.category, TripExpense.amount, TripExpense.expense_date)
            .filter(TripExpense.tenant_id == tenant_id)
            .filter(TripExpense.expense_date >= period_start, TripExpense.expense_date <= period_end)
            .order_by(TripExpense.id.asc())
            .all()
        )

        business_expenses = (
            self.db.query(
                BusinessExpense.category,
                BusinessExpense.recurrence,
                BusinessExpense.amount,
                BusinessExpense.effective_from,
                BusinessExpense.effective_to,
                BusinessExpense.truck_id,
            )
            .filter(BusinessExpense.tenant_id == tenant_id)
            .filter(BusinessExpense.effective_from <= period_end)
            .filter(or_(BusinessExpense.effective_to.is_(None), BusinessExpense.effective_to >= period_start))
            .order_by(BusinessExpense.id.asc())
            .all()
        )

        fuel_entries = (
            self.db.query(FuelEntry.total_cost, FuelEntry.gallons, FuelEntry.entry_date)
            .filter(FuelEntry.tenant_id == tenant_id)
            .filter(FuelEntry.entry_date >= period_start, FuelEntry.entry_date <= period_end)
            .order_by(FuelEntry.id.asc())
            .all()
        )

        trips = (
            self.db.query(Trip.driver_pay, Trip.start_date, Trip.truck_id, Trip.status)
            .filter(Trip.tenant_id == tenant_id)
            .filter(Trip.status.notin_(EXCLUDED_TRIP_STATUSES))
            .filter(Trip.start_date >= period_start, Trip.start_date <= period_end)
            .order_by(Trip.id.asc())
            .all()
        )

        logger.debug(
            "P&L rows for tenant_id=%s %s..%s: orders=%s trips=%s trip_expenses=%s business_expenses=%s fuel_entries=%s",
            tenant_id,
            period_start,
            period_end,
            len(orders),
            len(trips),
            len(trip_expenses),
            len(business_expenses),
            len(fuel_entries),
        )

        business_rows = [
            BusinessExpenseRow(
                category=row.category,
                recurrence=row.recurrence,
                amount=row.amount,
                effective_from=row.effective_from,
                effective_to=row.effective_to,
                truck_id=row.truck_id,
            )
            for row in business_expenses
        ]
        _warn_invalid_business_expenses(tenant_id, business_rows)

        return PnLInput(
            period_start=period_start,
            period_end=period_end,
            orders=[
                OrderRow(
                    revenue=row.revenue,
                    carrier_pay=row.carrier_pay,
                    distance_miles=row.distance_miles,
                    status=row.status,
                    delivered_at=row.delivered_at,
                    invoice_date=row.invoice_date,
                    order_id=row.id,
                    broker_fee=row.broker_fee,
                    local_fee=row.local_fee,
                )
                for row in orders
            ],
            trip_expenses=[
                TripExpenseRow(category=row.category, amount=row.amount, expense_date=row.expense_date)
                for row in trip_expenses
            ],
            business_expenses=business_rows,
            fuel_entries=[
                FuelEntryRow(total_cost=row.total_cost, gallons=row.gallons, entry_date=row.entry_date)
                for row in fuel_entries
            ],
            recognition_basis=self.recognition_basis,
            trips=[
                TripRow(driver_pay=row.driver_pay, start_date=row.start_date, truck_id=row.truck_id, status=row.status)
                for row in trips
            ],
        )


def get_pnl_report(
    db: Session,
    tenant_id: int,
    period_start: date,
    period_end: date,
    basis: Optional[str] = None,
) -> Dict[str, Any]:
    source = SqlPeriodDataSource(db, basis)
    pnl_input = source.fetch_period_data(tenant_id, period_start, period_end)
    pnl = calculate_pnl(pnl_input)
    metrics = calculate_unit_metrics(pnl_input, pnl)
    return {
        "period_start": period_start,
        "period_end": period_end,
        "recognition_basis": source.recognition_basis,
        "pnl": pnl.as_dict(),
        "metrics": metrics.as_dict(),
    }


def get_pnl_trend(
    db: Session,
    tenant_id: int,
    months: Optional[int] = None,
    as_of: Optional[date] = None,
    basis: Optional[str] = None,
) -> List[Dict[str, Any]]:
    source = SqlPeriodDataSource(db, basis)
    today = as_of or datetime.utcnow().date()
    if months is None:
        months = settings.DEFAULT_TREND_MONTHS
    trend = calculate_monthly_trend(source, tenant_id, months, today)
    return [month.as_dict() for month in trend]


def get_kpi_report(
    db: Session,
    tenant_id: int,
    period_start: date,
    period_end: date,
    basis: Optional[str] = None,
) -> Dict[str, Any]:
    resolved_basis = _resolve_basis(basis)
    recognized_on = Order.invoice_date if resolved_basis == "invoice" else Order.delivered_at

    revenue, broker_fees, carrier_pay, miles, order_count = (
        db.query(
            func.coalesce(func.sum(Order.revenue), 0),
            func.coalesce(func.sum(Order.broker_fee), 0),
            func.coalesce(func.sum(Order.carrier_pay), 0),
            func.coalesce(func.sum(Order.distance_miles), 0),
            func.count(Order.id),
        )
        .filter(Order.tenant_id == tenant_id)
        .filter(Order.status.notin_(EXCLUDED_ORDER_STATUSES))
        .filter(recognized_on >= period_start, recognized_on <= period_end)
        .one()
    )

    trip_filters = (
        Trip.tenant_id == tenant_id,
        Trip.start_date >= period_start,
        Trip.start_date <= period_end,
    )
    driver_pay = db.query(func.coalesce(func.sum(Trip.driver_pay), 0)).filter(*trip_filters).scalar()
    completed_trips = (
        db.query(func.count(Trip.id)).filter(*trip_filters).filter(Trip.status.in_(COMPLETED_TRIP_STATUSES)).scalar()
    )
    truck_count = (
        db.query(func.count(func.distinct(Trip.truck_id))).filter(*trip_filters).filter(Trip.truck_id.is_not(None)).scalar()
    )

    expense_rows = (
        db.query(TripExpense.category, func.coalesce(func.sum(TripExpense.amount), 0))
        .filter(TripExpense.tenant_id == tenant_id)
        .filter(TripExpense.expense_date >= period_start, TripExpense.expense_date <= period_end)
        .group_by(TripExpense.category)
        .all()
    )
    by_category: Dict[str, Decimal] = {category: Decimal("0") for category in TRIP_EXPENSE_CATEGORIES}
    for category, amount in expense_rows:
        key = category if category in by_category else "misc"
        by_category[key] += Decimal(amount or 0)
    total_trip_expenses = sum(by_category.values(), Decimal("0"))

    kpis = calculate_kpis(
        KPIInput(
            total_revenue=Decimal(revenue or 0),
            total_broker_fees=Decimal(broker_fees or 0),
            total_driver_pay=Decimal(driver_pay or 0),
            total_trip_expenses=total_trip_expenses,
            total_carrier_pay=Decimal(carrier_pay or 0),
            total_miles=Decimal(miles or 0),
            order_count=int(order_count or 0),
            truck_count=int(truck_count or 0),
            completed_trip_count=int(completed_trips or 0),
        )
    )
    breakdown = calculate_expense_breakdown(
        {
            "driver_pay": driver_pay,
            "broker_fees": broker_fees,
            "carrier_pay": carrier_pay,
            **by_category,
        }
    )

    return {
        "period_start": period_start,
        "period_end": period_end,
        "order_count": int(order_count or 0),
        "truck_count": int(truck_count or 0),
        "completed_trip_count": int(completed_trips or 0),
        "kpis": kpis.as_dict(),
        "expense_breakdown": [asdict(item) for item in breakdown],
    }
