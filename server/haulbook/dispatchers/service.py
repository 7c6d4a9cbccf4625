from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from haulbook.models import Order, User
from haulbook.utils.money import quantize_money, quantize_to, safe_div, to_decimal

DISPATCH_ROLES = ("owner", "admin", "dispatcher")
COMPLETED_ORDER_STATUSES = ("delivered", "invoiced", "paid")


def get_dispatcher_performance(
    db: Session,
    tenant_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[dict[str, Any]]:
    if start and end and start > end:
        raise ValueError("Start date must be on or before end date.")

    members = (
        db.query(User)
        .filter(User.tenant_id == tenant_id, User.role.in_(DISPATCH_ROLES))
        .order_by(User.id.asc())
        .all()
    )
    if not members:
        return []

    query = (
        db.query(
            Order.dispatcher_id,
            func.count(Order.id),
            func.coalesce(func.sum(case((Order.status.in_(COMPLETED_ORDER_STATUSES), 1), else_=0)), 0),
            func.coalesce(func.sum(Order.revenue), 0),
        )
        .filter(Order.tenant_id == tenant_id)
        .filter(Order.dispatcher_id.in_([member.id for member in members]))
        .filter(Order.status != "cancelled")
    )
    if start:
        query = query.filter(func.date(Order.created_at) >= start)
    if end:
        query = query.filter(func.date(Order.created_at) <= end)
    totals = {row[0]: row[1:] for row in query.group_by(Order.dispatcher_id).all()}

    rows = []
    for member in members:
        total_orders, completed_orders, revenue = totals.get(member.id, (0, 0, 0))
        total_orders = int(total_orders or 0)
        completed_orders = int(completed_orders or 0)
        rows.append(
            {
                "user_id": member.id,
                "name": member.full_name or member.email,
                "email": member.email,
                "role": member.role,
                "total_orders": total_orders,
                "completed_orders": completed_orders,
                "revenue": quantize_money(to_decimal(revenue)),
                "completion_rate": quantize_to(
                    safe_div(Decimal(completed_orders), Decimal(total_orders)) * Decimal("100"), "0.1"
                ),
            }
        )
    return sorted(rows, key=lambda row: (-row["revenue"], row["user_id"]))
