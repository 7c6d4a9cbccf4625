"""Profit and loss engine.

Pure functions that fold period-scoped order, trip expense, business
expense and fuel rows into a P&L statement and per-load / per-mile unit
economics. Nothing here touches the database: rows arrive already fetched
(see ``financials.service``) and every result is a frozen dataclass.

Row values are read fail-soft. An amount that cannot be parsed counts as
zero and a row without a usable date is left out of the period, so one bad
record never blanks a report.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from haulbook.financials.periods import inclusive_days, month_end, month_key, month_label, month_range
from haulbook.utils.money import ZERO, clean_zero, parse_decimal, quantize_money, quantize_to, safe_div, to_decimal

Amount = Union[Decimal, float, int, str, None]
DateValue = Union[date, datetime, str, None]

HUNDRED = Decimal("100")

# Average cycle lengths in days.
RECURRENCE_CYCLE_DAYS: Dict[str, Decimal] = {
    "monthly": Decimal("30.4375"),
    "quarterly": Decimal("91.3125"),
    "annual": Decimal("365.25"),
}
ONE_TIME = "one_time"
RECURRENCES: Tuple[str, ...] = ("monthly", "quarterly", "annual", ONE_TIME)

RECOGNITION_BASES: Tuple[str, ...] = ("delivery", "invoice")
FUEL_CATEGORY = "fuel"


# ---------------------------------------------------------------------------
# Input rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderRow:
    revenue: Amount
    carrier_pay: Amount
    distance_miles: Amount = None
    status: Optional[str] = None
    delivered_at: DateValue = None
    invoice_date: DateValue = None
    order_id: Optional[int] = None
    broker_fee: Amount = None
    local_fee: Amount = None


@dataclass(frozen=True)
class TripRow:
    driver_pay: Amount
    start_date: DateValue
    truck_id: Optional[int] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class TripExpenseRow:
    category: Optional[str]
    amount: Amount
    expense_date: DateValue


@dataclass(frozen=True)
class BusinessExpenseRow:
    category: Optional[str]
    recurrence: Optional[str]
    amount: Amount
    effective_from: DateValue
    effective_to: DateValue = None
    truck_id: Optional[int] = None


@dataclass(frozen=True)
class FuelEntryRow:
    total_cost: Amount
    gallons: Amount
    entry_date: DateValue


@dataclass(frozen=True)
class PnLInput:
    period_start: date
    period_end: date
    orders: Sequence[OrderRow] = ()
    trip_expenses: Sequence[TripExpenseRow] = ()
    business_expenses: Sequence[BusinessExpenseRow] = ()
    fuel_entries: Sequence[FuelEntryRow] = ()
    recognition_basis: str = "delivery"
    trips: Sequence[TripRow] = ()

    def __post_init__(self) -> None:
        for name in ("orders", "trip_expenses", "business_expenses", "fuel_entries", "trips"):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PnLOutput:
    period_start: date
    period_end: date
    total_revenue: Decimal
    total_carrier_pay: Decimal
    total_trip_expenses: Decimal
    total_business_expenses: Decimal
    gross_profit: Decimal
    net_profit: Decimal
    net_margin_pct: Decimal
    gross_margin_pct: Decimal
    break_even_revenue: Optional[Decimal]
    total_fuel_cost: Decimal
    fuel_gallons: Decimal
    truck_specific_expenses: Decimal
    company_wide_expenses: Decimal
    # Revenue waterfall; informational, net_profit does not use it.
    total_broker_fees: Decimal
    total_local_fees: Decimal
    clean_gross: Decimal
    total_driver_pay: Decimal
    truck_gross: Decimal
    truck_gross_margin_pct: Decimal
    trip_expenses_by_category: Dict[str, Decimal] = field(default_factory=dict)
    business_expenses_by_category: Dict[str, Decimal] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UnitMetrics:
    load_count: int
    total_miles: Decimal
    revenue_per_load: Decimal
    profit_per_load: Decimal
    revenue_per_mile: Decimal
    profit_per_mile: Decimal
    cost_per_mile: Decimal
    fuel_cost_per_mile: Decimal
    miles_per_gallon: Decimal
    truck_count: int
    completed_trip_count: int
    revenue_per_truck: Decimal
    truck_gross_per_truck: Decimal
    fixed_cost_per_truck: Decimal
    net_profit_per_truck: Decimal
    revenue_per_trip: Decimal
    truck_gross_per_trip: Decimal
    overhead_per_trip: Decimal
    direct_cost_per_trip: Decimal
    net_profit_per_trip: Decimal
    appc: Decimal
    truck_gross_per_mile: Decimal
    fixed_cost_per_mile: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MonthlyPnL:
    month_key: str
    month_label: str
    period_start: date
    period_end: date
    pnl: PnLOutput
    metrics: UnitMetrics

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PeriodDataSource(Protocol):
    def fetch_period_data(self, tenant_id: int, period_start: date, period_end: date) -> PnLInput:
        ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _money(value: Decimal) -> Decimal:
    return clean_zero(quantize_money(value))


def _as_date(value: DateValue) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _in_period(value: DateValue, period_start: date, period_end: date) -> bool:
    day = _as_date(value)
    return day is not None and period_start <= day <= period_end


def _category(value: Optional[str], default: str) -> str:
    if not isinstance(value, str):
        return default
    return value.strip().lower() or default


def recognition_date(order: OrderRow, basis: str) -> Optional[date]:
    if basis == "invoice":
        return _as_date(order.invoice_date)
    return _as_date(order.delivered_at)


def orders_in_period(pnl_input: PnLInput) -> List[OrderRow]:
    return [
        order
        for order in pnl_input.orders
        if _in_period(
            recognition_date(order, pnl_input.recognition_basis),
            pnl_input.period_start,
            pnl_input.period_end,
        )
    ]


def trips_in_period(pnl_input: PnLInput) -> List[TripRow]:
    return [
        trip
        for trip in pnl_input.trips
        if _in_period(trip.start_date, pnl_input.period_start, pnl_input.period_end)
    ]


def is_valid_business_expense(expense: BusinessExpenseRow) -> bool:
    effective_from = _as_date(expense.effective_from)
    if effective_from is None:
        return False
    effective_to = _as_date(expense.effective_to)
    if effective_to is not None and effective_to < effective_from:
        return False
    return _category(expense.recurrence, "") in RECURRENCES and parse_decimal(expense.amount) is not None


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


# ---------------------------------------------------------------------------
# Proration
# ---------------------------------------------------------------------------


def prorate_expense(expense: BusinessExpenseRow, period_start: date, period_end: date) -> Decimal:
    """Return the share of ``expense`` that falls in ``[period_start, period_end]``.

    Recurring expenses accrue at a daily rate (amount divided by the average
    cycle length) over the inclusive overlap between the expense's effective
    range and the period. One-time expenses are recognised in full only when
    ``effective_from`` itself lies inside the period.

    Invalid records (no start date, end before start, unknown recurrence,
    unusable amount) and inverted periods contribute ``0.00``.
    """
    zero = _money(ZERO)
    if period_end < period_start or not is_valid_business_expense(expense):
        return zero

    effective_from = _as_date(expense.effective_from)
    effective_to = _as_date(expense.effective_to)
    amount = to_decimal(expense.amount)
    recurrence = _category(expense.recurrence, "")

    if recurrence == ONE_TIME:
        if period_start <= effective_from <= period_end:
            return _money(amount)
        return zero

    cycle_days = RECURRENCE_CYCLE_DAYS[recurrence]
    overlap_start = max(effective_from, period_start)
    overlap_end = period_end if effective_to is None else min(effective_to, period_end)
    days = inclusive_days(overlap_start, overlap_end)
    if days == 0:
        return zero
    return _money(amount * days / cycle_days)


# ---------------------------------------------------------------------------
# P&L and unit metrics
# ---------------------------------------------------------------------------


def calculate_pnl(pnl_input: PnLInput) -> PnLOutput:
    start, end = pnl_input.period_start, pnl_input.period_end

    orders = orders_in_period(pnl_input)
    total_revenue = _money(_sum(to_decimal(order.revenue) for order in orders))
    total_carrier_pay = _money(_sum(to_decimal(order.carrier_pay) for order in orders))

    trip_by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in pnl_input.trip_expenses:
        if not _in_period(expense.expense_date, start, end):
            continue
        trip_by_category[_category(expense.category, "misc")] += to_decimal(expense.amount)
    total_trip_expenses = _money(_sum(trip_by_category.values()))

    business_by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    truck_specific = ZERO
    company_wide = ZERO
    for expense in pnl_input.business_expenses:
        prorated = prorate_expense(expense, start, end)
        if prorated == 0:
            continue
        business_by_category[_category(expense.category, "other")] += prorated
        if expense.truck_id is not None:
            truck_specific += prorated
        else:
            company_wide += prorated
    total_business_expenses = _money(truck_specific + company_wide)

    gross_profit = _money(total_revenue - total_carrier_pay - total_trip_expenses)
    net_profit = _money(gross_profit - total_business_expenses)

    if total_revenue > 0:
        net_margin_pct = quantize_to(net_profit / total_revenue * HUNDRED, "0.1")
        gross_margin_pct = quantize_to(gross_profit / total_revenue * HUNDRED, "0.1")
    else:
        net_margin_pct = quantize_to(ZERO, "0.1")
        gross_margin_pct = quantize_to(ZERO, "0.1")

    gross_margin_ratio = safe_div(gross_profit, total_revenue)
    break_even_revenue = _money(total_business_expenses / gross_margin_ratio) if gross_margin_ratio > 0 else None

    fuel_rows = [entry for entry in pnl_input.fuel_entries if _in_period(entry.entry_date, start, end)]
    if fuel_rows:
        total_fuel_cost = _money(_sum(to_decimal(entry.total_cost) for entry in fuel_rows))
        fuel_gallons = quantize_to(_sum(to_decimal(entry.gallons) for entry in fuel_rows), "0.001")
    else:
        total_fuel_cost = _money(trip_by_category.get(FUEL_CATEGORY, ZERO))
        fuel_gallons = quantize_to(ZERO, "0.001")

    total_broker_fees = _money(_sum(to_decimal(order.broker_fee) for order in orders))
    total_local_fees = _money(_sum(to_decimal(order.local_fee) for order in orders))
    clean_gross = _money(total_revenue - total_broker_fees - total_local_fees)
    paid_trips = [trip for trip in trips_in_period(pnl_input) if _category(trip.status, "") != "cancelled"]
    total_driver_pay = _money(_sum(to_decimal(trip.driver_pay) for trip in paid_trips))
    truck_gross = _money(clean_gross - total_driver_pay)
    if total_revenue > 0:
        truck_gross_margin_pct = quantize_to(truck_gross / total_revenue * HUNDRED, "0.1")
    else:
        truck_gross_margin_pct = quantize_to(ZERO, "0.1")

    return PnLOutput(
        period_start=start,
        period_end=end,
        total_revenue=total_revenue,
        total_carrier_pay=total_carrier_pay,
        total_trip_expenses=total_trip_expenses,
        total_business_expenses=total_business_expenses,
        gross_profit=gross_profit,
        net_profit=net_profit,
        net_margin_pct=net_margin_pct,
        gross_margin_pct=gross_margin_pct,
        break_even_revenue=break_even_revenue,
        total_fuel_cost=total_fuel_cost,
        fuel_gallons=fuel_gallons,
        truck_specific_expenses=_money(truck_specific),
        company_wide_expenses=_money(company_wide),
        total_broker_fees=total_broker_fees,
        total_local_fees=total_local_fees,
        clean_gross=clean_gross,
        total_driver_pay=total_driver_pay,
        truck_gross=truck_gross,
        truck_gross_margin_pct=truck_gross_margin_pct,
        trip_expenses_by_category={key: _money(value) for key, value in sorted(trip_by_category.items())},
        business_expenses_by_category={key: _money(value) for key, value in sorted(business_by_category.items())},
    )


def calculate_unit_metrics(pnl_input: PnLInput, pnl: PnLOutput) -> UnitMetrics:
    orders = orders_in_period(pnl_input)
    load_count = len(orders)
    loads = Decimal(load_count)
    total_miles = clean_zero(_sum(to_decimal(order.distance_miles) for order in orders))
    total_costs = pnl.total_carrier_pay + pnl.total_trip_expenses + pnl.total_business_expenses

    period_trips = [trip for trip in trips_in_period(pnl_input) if _category(trip.status, "") != "cancelled"]
    truck_count = len({trip.truck_id for trip in period_trips if trip.truck_id is not None})
    completed_trip_count = sum(1 for trip in period_trips if _category(trip.status, "") == "completed")
    trucks = Decimal(truck_count)
    trips = Decimal(completed_trip_count)

    return UnitMetrics(
        load_count=load_count,
        total_miles=total_miles,
        revenue_per_load=_money(safe_div(pnl.total_revenue, loads)),
        profit_per_load=_money(safe_div(pnl.net_profit, loads)),
        revenue_per_mile=_money(safe_div(pnl.total_revenue, total_miles)),
        profit_per_mile=_money(safe_div(pnl.net_profit, total_miles)),
        cost_per_mile=_money(safe_div(total_costs, total_miles)),
        fuel_cost_per_mile=_money(safe_div(pnl.total_fuel_cost, total_miles)),
        miles_per_gallon=quantize_to(safe_div(total_miles, pnl.fuel_gallons), "0.1"),
        truck_count=truck_count,
        completed_trip_count=completed_trip_count,
        revenue_per_truck=_money(safe_div(pnl.total_revenue, trucks)),
        truck_gross_per_truck=_money(safe_div(pnl.truck_gross, trucks)),
        fixed_cost_per_truck=_money(safe_div(pnl.total_business_expenses, trucks)),
        net_profit_per_truck=_money(safe_div(pnl.net_profit, trucks)),
        revenue_per_trip=_money(safe_div(pnl.total_revenue, trips)),
        truck_gross_per_trip=_money(safe_div(pnl.truck_gross, trips)),
        overhead_per_trip=_money(safe_div(pnl.total_business_expenses, trips)),
        direct_cost_per_trip=_money(safe_div(pnl.total_trip_expenses, trips)),
        net_profit_per_trip=_money(safe_div(pnl.net_profit, trips)),
        appc=_money(safe_div(pnl.total_revenue, loads)),
        truck_gross_per_mile=_money(safe_div(pnl.truck_gross, total_miles)),
        fixed_cost_per_mile=_money(safe_div(pnl.total_business_expenses, total_miles)),
    )


def calculate_monthly_trend(
    source: PeriodDataSource,
    tenant_id: int,
    months: int,
    as_of: date,
) -> List[MonthlyPnL]:
    if months <= 0:
        raise ValueError("Months must be greater than zero.")

    trend: List[MonthlyPnL] = []
    for start in month_range(as_of, months):
        end = month_end(start)
        pnl_input = source.fetch_period_data(tenant_id, start, end)
        pnl = calculate_pnl(pnl_input)
        trend.append(
            MonthlyPnL(
                month_key=month_key(start),
                month_label=month_label(start),
                period_start=start,
                period_end=end,
                pnl=pnl,
                metrics=calculate_unit_metrics(pnl_input, pnl),
            )
        )
    return trend
