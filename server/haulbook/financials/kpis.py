"""Fleet KPI library.

Per-mile, per-order, margin and per-truck indicators computed from period
totals. Ratios resolve to zero when their denominator is zero.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping

from haulbook.utils.money import ZERO, quantize_money, quantize_to, safe_div, to_decimal

HUNDRED = Decimal("100")

EXPENSE_LABELS: Dict[str, str] = {
    "driver_pay": "Driver Pay",
    "broker_fees": "Broker Fees",
    "carrier_pay": "Carrier Pay",
    "fuel": "Fuel",
    "tolls": "Tolls",
    "repairs": "Repairs",
    "lodging": "Lodging",
    "misc": "Misc",
}


@dataclass(frozen=True)
class KPIInput:
    total_revenue: Decimal
    total_broker_fees: Decimal
    total_driver_pay: Decimal
    total_trip_expenses: Decimal
    total_carrier_pay: Decimal
    total_miles: Decimal
    order_count: int
    truck_count: int
    completed_trip_count: int


@dataclass(frozen=True)
class KPIOutput:
    revenue_per_mile: Decimal
    cost_per_mile: Decimal
    profit_per_mile: Decimal
    avg_pay_per_order: Decimal
    gross_margin_pct: Decimal
    net_margin_pct: Decimal
    operating_ratio_pct: Decimal
    revenue_per_truck: Decimal
    profit_per_truck: Decimal
    miles_per_truck: Decimal
    net_profit: Decimal
    total_expenses: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExpenseBreakdownItem:
    category: str
    label: str
    amount: Decimal
    percentage: Decimal


def _pct(numerator: Decimal, denominator: Decimal) -> Decimal:
    return quantize_to(safe_div(numerator, denominator) * HUNDRED, "0.1")


def calculate_kpis(kpi_input: KPIInput) -> KPIOutput:
    revenue = to_decimal(kpi_input.total_revenue)
    broker_fees = to_decimal(kpi_input.total_broker_fees)
    driver_pay = to_decimal(kpi_input.total_driver_pay)
    miles = to_decimal(kpi_input.total_miles)
    trucks = Decimal(max(kpi_input.truck_count, 0))

    total_expenses = (
        broker_fees
        + driver_pay
        + to_decimal(kpi_input.total_trip_expenses)
        + to_decimal(kpi_input.total_carrier_pay)
    )
    net_profit = revenue - total_expenses

    return KPIOutput(
        revenue_per_mile=quantize_to(safe_div(revenue, miles), "0.01"),
        cost_per_mile=quantize_to(safe_div(total_expenses, miles), "0.01"),
        profit_per_mile=quantize_to(safe_div(net_profit, miles), "0.01"),
        avg_pay_per_order=quantize_to(safe_div(revenue, Decimal(max(kpi_input.order_count, 0))), "0.01"),
        gross_margin_pct=_pct(revenue - broker_fees - driver_pay, revenue),
        net_margin_pct=_pct(net_profit, revenue),
        operating_ratio_pct=_pct(total_expenses, revenue),
        revenue_per_truck=quantize_to(safe_div(revenue, trucks), "0.01"),
        profit_per_truck=quantize_to(safe_div(net_profit, trucks), "0.01"),
        miles_per_truck=quantize_to(safe_div(miles, trucks), "0.1"),
        net_profit=quantize_to(net_profit, "0.01"),
        total_expenses=quantize_to(total_expenses, "0.01"),
    )


def calculate_expense_breakdown(amounts: Mapping[str, Any]) -> List[ExpenseBreakdownItem]:
    parsed = {category: to_decimal(amount) for category, amount in amounts.items()}
    total = sum(parsed.values(), ZERO)

    items = [
        ExpenseBreakdownItem(
            category=category,
            label=EXPENSE_LABELS.get(category, category.replace("_", " ").title()),
            amount=quantize_money(amount),
            percentage=_pct(amount, total),
        )
        for category, amount in parsed.items()
        if amount > 0
    ]
    return sorted(items, key=lambda item: (-item.amount, item.category))
