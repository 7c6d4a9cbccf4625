from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal

DecimalValue = condecimal(max_digits=14, decimal_places=2)


class AgingBrokerRow(BaseModel):
    broker_id: Optional[int] = None
    broker_name: str
    current: DecimalValue
    bucket_1_30: DecimalValue = Field(alias="1_30")
    bucket_31_60: DecimalValue = Field(alias="31_60")
    bucket_61_90: DecimalValue = Field(alias="61_90")
    bucket_90_plus: DecimalValue = Field(alias="90_plus")
    total: DecimalValue

    model_config = ConfigDict(populate_by_name=True)


class ReceivableOrderRow(BaseModel):
    order_id: int
    order_number: Optional[str] = None
    invoice_date: date
    carrier_pay: DecimalValue
    amount_paid: DecimalValue
    amount_due: DecimalValue
    days_outstanding: int
    payment_status: str


class BrokerReceivableRow(BaseModel):
    broker_id: Optional[int] = None
    broker_name: str
    total_owed: DecimalValue
    invoice_count: int
    oldest_unpaid_invoice_date: Optional[date] = None
    overdue_amount: DecimalValue
    paid_this_month: DecimalValue
    orders: List[ReceivableOrderRow]


class CollectionRateResponse(BaseModel):
    total_invoiced: DecimalValue
    total_collected: DecimalValue
    outstanding: DecimalValue
    invoice_count: int
    collection_rate: Decimal


class ReadyToInvoiceRow(BaseModel):
    order_id: int
    order_number: Optional[str] = None
    broker_id: Optional[int] = None
    broker_name: Optional[str] = None
    vehicle: str
    route: str
    carrier_pay: DecimalValue
    delivered_at: Optional[date] = None
    updated_at: datetime
