from datetime import date
from decimal import Decimal

from pydantic import BaseModel, condecimal

DecimalValue = condecimal(max_digits=14, decimal_places=2)


class FactorOrderRequest(BaseModel):
    as_of: date | None = None


class FactorOrderResponse(BaseModel):
    order_id: int
    payment_status: str
    invoice_date: date
    carrier_pay: DecimalValue
    fee_rate: Decimal
    fee: DecimalValue
    net_amount: DecimalValue
