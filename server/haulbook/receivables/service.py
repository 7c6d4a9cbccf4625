from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from haulbook.financials.periods import month_start
from haulbook.models import Order, Payment
from haulbook.utils.money import quantize_money, quantize_to, safe_div, to_decimal


ZERO = Decimal("0.00")
OUTSTANDING_PAYMENT_STATUSES = ("invoiced", "partially_paid")
INVOICED_PAYMENT_STATUSES = ("invoiced", "partially_paid", "paid")
AGING_BUCKETS = ("current", "1_30", "31_60", "61_90", "90_plus")
OVERDUE_AFTER_DAYS = 30
UNASSIGNED_BROKER = "Unassigned"


def _bucket_for_days(days_since_invoice: int) -> str:
    if days_since_invoice <= 0:
        return "current"
    if days_since_invoice <= 30:
        return "1_30"
    if days_since_invoice <= 60:
        return "31_60"
    if days_since_invoice <= 90:
        return "61_90"
    return "90_plus"


def _outstanding(order: Order) -> Decimal:
    balance = to_decimal(order.carrier_pay) - to_decimal(order.amount_paid)
    return balance if balance > 0 else ZERO


def _open_invoices(db: Session, tenant_id: int) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.tenant_id == tenant_id)
        .filter(Order.payment_status.in_(OUTSTANDING_PAYMENT_STATUSES))
        .filter(Order.invoice_date.is_not(None))
        .order_by(Order.invoice_date.asc(), Order.id.asc())
        .all()
    )


def _broker_key(order: Order) -> tuple[int | None, str]:
    if order.broker is None:
        return None, UNASSIGNED_BROKER
    return order.broker.id, order.broker.name


def vehicle_name(order: Order) -> str:
    parts = [str(part) for part in (order.vehicle_year, order.vehicle_make, order.vehicle_model) if part]
    return " ".join(parts) if parts else "Unknown Vehicle"


def route_label(order: Order) -> str:
    def place(city: str | None, state: str | None) -> str:
        return ", ".join(part for part in (city, state) if part)

    origin = place(order.pickup_city, order.pickup_state)
    destination = place(order.delivery_city, order.delivery_state)
    if not origin and not destination:
        return "No route"
    return f"{origin or '?'} → {destination or '?'}"


def get_aging_by_broker(db: Session, tenant_id: int, as_of: date) -> list[dict[str, Any]]:
    rows_by_broker: dict[int | None, dict[str, Any]] = {}
    for order in _open_invoices(db, tenant_id):
        amount_due = _outstanding(order)
        if amount_due <= 0:
            continue

        broker_id, broker_name = _broker_key(order)
        if broker_id not in rows_by_broker:
            rows_by_broker[broker_id] = {
                "broker_id": broker_id,
                "broker_name": broker_name,
                **{bucket: ZERO for bucket in AGING_BUCKETS},
                "total": ZERO,
            }

        bucket = _bucket_for_days((as_of - order.invoice_date).days)
        rows_by_broker[broker_id][bucket] += amount_due
        rows_by_broker[broker_id]["total"] += amount_due

    for row in rows_by_broker.values():
        for key in (*AGING_BUCKETS, "total"):
            row[key] = quantize_money(row[key])

    return sorted(rows_by_broker.values(), key=lambda row: (-row["total"], row["broker_name"].lower()))


def get_broker_receivables(db: Session, tenant_id: int, as_of: date) -> list[dict[str, Any]]:
    rows_by_broker: dict[int | None, dict[str, Any]] = {}
    for order in _open_invoices(db, tenant_id):
        amount_due = _outstanding(order)
        if amount_due <= 0:
            continue

        broker_id, broker_name = _broker_key(order)
        row = rows_by_broker.setdefault(
            broker_id,
            {
                "broker_id": broker_id,
                "broker_name": broker_name,
                "total_owed": ZERO,
                "invoice_count": 0,
                "oldest_unpaid_invoice_date": None,
                "overdue_amount": ZERO,
                "paid_this_month": ZERO,
                "orders": [],
            },
        )
        days_outstanding = (as_of - order.invoice_date).days
        row["total_owed"] += amount_due
        row["invoice_count"] += 1
        if row["oldest_unpaid_invoice_date"] is None or order.invoice_date < row["oldest_unpaid_invoice_date"]:
            row["oldest_unpaid_invoice_date"] = order.invoice_date
        if days_outstanding > OVERDUE_AFTER_DAYS:
            row["overdue_amount"] += amount_due
        row["orders"].append(
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "invoice_date": order.invoice_date,
                "carrier_pay": quantize_money(to_decimal(order.carrier_pay)),
                "amount_paid": quantize_money(to_decimal(order.amount_paid)),
                "amount_due": quantize_money(amount_due),
                "days_outstanding": days_outstanding,
                "payment_status": order.payment_status,
            }
        )

    if not rows_by_broker:
        return []

    paid_rows = (
        db.query(Order.broker_id, func.coalesce(func.sum(Payment.amount), 0))
        .select_from(Payment)
        .join(Order, Order.id == Payment.order_id)
        .filter(Payment.tenant_id == tenant_id)
        .filter(Payment.payment_date >= month_start(as_of), Payment.payment_date <= as_of)
        .group_by(Order.broker_id)
        .all()
    )
    for broker_id, paid in paid_rows:
        row = rows_by_broker.get(broker_id)
        if row is not None:
            row["paid_this_month"] += to_decimal(paid)

    for row in rows_by_broker.values():
        for key in ("total_owed", "overdue_amount", "paid_this_month"):
            row[key] = quantize_money(row[key])

    return sorted(rows_by_broker.values(), key=lambda row: (-row["total_owed"], row["broker_name"].lower()))


def get_collection_rate(db: Session, tenant_id: int) -> dict[str, Any]:
    invoiced, collected, invoice_count = (
        db.query(
            func.coalesce(func.sum(Order.carrier_pay), 0),
            func.coalesce(func.sum(Order.amount_paid), 0),
            func.count(Order.id),
        )
        .filter(Order.tenant_id == tenant_id)
        .filter(Order.payment_status.in_(INVOICED_PAYMENT_STATUSES))
        .one()
    )
    total_invoiced = to_decimal(invoiced)
    total_collected = to_decimal(collected)
    rate = quantize_to(safe_div(total_collected, total_invoiced) * Decimal("100"), "0.01")
    return {
        "total_invoiced": quantize_money(total_invoiced),
        "total_collected": quantize_money(total_collected),
        "outstanding": quantize_money(max(total_invoiced - total_collected, ZERO)),
        "invoice_count": int(invoice_count or 0),
        "collection_rate": rate,
    }


def get_ready_to_invoice(db: Session, tenant_id: int) -> list[dict[str, Any]]:
    orders = (
        db.query(Order)
        .filter(Order.tenant_id == tenant_id)
        .filter(Order.status == "delivered", Order.payment_status == "unpaid")
        .order_by(Order.updated_at.asc(), Order.id.asc())
        .all()
    )
    return [
        {
            "order_id": order.id,
            "order_number": order.order_number,
            "broker_id": order.broker_id,
            "broker_name": order.broker.name if order.broker else None,
            "vehicle": vehicle_name(order),
            "route": route_label(order),
            "carrier_pay": quantize_money(to_decimal(order.carrier_pay)),
            "delivered_at": order.delivered_at,
            "updated_at": order.updated_at,
        }
        for order in orders
    ]
