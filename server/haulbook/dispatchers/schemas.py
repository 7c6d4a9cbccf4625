from decimal import Decimal

from pydantic import BaseModel, condecimal

DecimalValue = condecimal(max_digits=14, decimal_places=2)


class DispatcherPerformanceRow(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    total_orders: int
    completed_orders: int
    revenue: DecimalValue
    completion_rate: Decimal
