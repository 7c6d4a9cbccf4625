from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from haulbook.models import Order, Tenant
from haulbook.utils.money import quantize_money, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class FactoringQuote:
    fee_rate: Decimal
    fee: Decimal
    net_amount: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_factoring_fee(carrier_pay: Any, fee_rate_pct: Any) -> FactoringQuote:
    gross = to_decimal(carrier_pay)
    rate = to_decimal(fee_rate_pct)
    fee = quantize_money(gross * rate / HUNDRED)
    return FactoringQuote(fee_rate=rate, fee=fee, net_amount=quantize_money(gross - fee))


def factor_order(db: Session, tenant_id: int, order_id: int, as_of: Optional[date] = None) -> Dict[str, Any]:
    order = db.query(Order).filter(Order.id == order_id, Order.tenant_id == tenant_id).first()
    if not order:
        raise LookupError("Order not found.")

    tenant = db.get(Tenant, tenant_id)
    fee_rate = to_decimal(tenant.factoring_fee_rate if tenant else None)
    if fee_rate <= 0:
        raise ValueError("Factoring fee rate is not configured.")
    if order.payment_status != "unpaid":
        raise ValueError("Only unpaid orders can be factored.")
    if order.status != "delivered":
        raise ValueError("Only delivered orders can be factored.")

    quote = calculate_factoring_fee(order.carrier_pay, fee_rate)
    order.payment_status = "factored"
    order.invoice_date = as_of or datetime.utcnow().date()
    db.commit()
    db.refresh(order)
    logger.info(
        "Factored order_id=%s tenant_id=%s fee=%s net=%s",
        order.id,
        tenant_id,
        quote.fee,
        quote.net_amount,
    )
    return {
        "order_id": order.id,
        "payment_status": order.payment_status,
        "invoice_date": order.invoice_date,
        "carrier_pay": quantize_money(to_decimal(order.carrier_pay)),
        **quote.as_dict(),
    }
