from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, condecimal

DecimalValue = condecimal(max_digits=14, decimal_places=2)


class TripFinancialsResponse(BaseModel):
    trip_id: int
    trip_number: Optional[str] = None
    revenue: DecimalValue
    broker_fees: DecimalValue
    local_fees: DecimalValue
    carrier_pay: DecimalValue
    driver_pay: DecimalValue
    expenses: DecimalValue
    clean_gross: DecimalValue
    truck_gross: DecimalValue
    net_profit: DecimalValue
    total_miles: Decimal
    order_count: int
    revenue_per_mile: DecimalValue
    cost_per_mile: DecimalValue
    profit_per_mile: DecimalValue
    avg_pay_per_car: DecimalValue
