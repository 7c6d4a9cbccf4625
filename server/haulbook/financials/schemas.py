from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, condecimal


DecimalValue = condecimal(max_digits=14, decimal_places=2)


class PnLStatementResponse(BaseModel):
    period_start: date
    period_end: date
    total_revenue: DecimalValue
    total_carrier_pay: DecimalValue
    total_trip_expenses: DecimalValue
    total_business_expenses: DecimalValue
    gross_profit: DecimalValue
    net_profit: DecimalValue
    net_margin_pct: Decimal
    gross_margin_pct: Decimal
    break_even_revenue: Optional[DecimalValue] = None
    total_fuel_cost: DecimalValue
    fuel_gallons: Decimal
    truck_specific_expenses: DecimalValue
    company_wide_expenses: DecimalValue
    total_broker_fees: DecimalValue
    total_local_fees: DecimalValue
    clean_gross: DecimalValue
    total_driver_pay: DecimalValue
    truck_gross: DecimalValue
    truck_gross_margin_pct: Decimal
    trip_expenses_by_category: Dict[str, DecimalValue]
    business_expenses_by_category: Dict[str, DecimalValue]


class UnitMetricsResponse(BaseModel):
    load_count: int
    total_miles: Decimal
    revenue_per_load: DecimalValue
    profit_per_load: DecimalValue
    revenue_per_mile: DecimalValue
    profit_per_mile: DecimalValue
    cost_per_mile: DecimalValue
    fuel_cost_per_mile: DecimalValue
    miles_per_gallon: Decimal
    truck_count: int
    completed_trip_count: int
    revenue_per_truck: DecimalValue
    truck_gross_per_truck: DecimalValue
    fixed_cost_per_truck: DecimalValue
    net_profit_per_truck: DecimalValue
    revenue_per_trip: DecimalValue
    truck_gross_per_trip: DecimalValue
    overhead_per_trip: DecimalValue
    direct_cost_per_trip: DecimalValue
    net_profit_per_trip: DecimalValue
    appc: DecimalValue
    truck_gross_per_mile: DecimalValue
    fixed_cost_per_mile: DecimalValue


class PnLReportResponse(BaseModel):
    period_start: date
    period_end: date
    recognition_basis: str
    pnl: PnLStatementResponse
    metrics: UnitMetricsResponse


class MonthlyPnLResponse(BaseModel):
    month_key: str
    month_label: str
    period_start: date
    period_end: date
    pnl: PnLStatementResponse
    metrics: UnitMetricsResponse


class KPIValues(BaseModel):
    revenue_per_mile: DecimalValue
    cost_per_mile: DecimalValue
    profit_per_mile: DecimalValue
    avg_pay_per_order: DecimalValue
    gross_margin_pct: Decimal
    net_margin_pct: Decimal
    operating_ratio_pct: Decimal
    revenue_per_truck: DecimalValue
    profit_per_truck: DecimalValue
    miles_per_truck: Decimal
    net_profit: DecimalValue
    total_expenses: DecimalValue


class ExpenseBreakdownRow(BaseModel):
    category: str
    label: str
    amount: DecimalValue
    percentage: Decimal


class KPIReportResponse(BaseModel):
    period_start: date
    period_end: date
    order_count: int
    truck_count: int
    completed_trip_count: int
    kpis: KPIValues
    expense_breakdown: List[ExpenseBreakdownRow]
