from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from haulbook.auth import get_current_user
from haulbook.db import get_db
from haulbook.models import User
from haulbook.receivables.schemas import (
    AgingBrokerRow,
    BrokerReceivableRow,
    CollectionRateResponse,
    ReadyToInvoiceRow,
)
from haulbook.receivables.service import (
    get_aging_by_broker,
    get_broker_receivables,
    get_collection_rate,
    get_ready_to_invoice,
)

router = APIRouter(prefix="/api/receivables", tags=["receivables"])


@router.get("/aging", response_model=List[AgingBrokerRow])
def get_aging(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_aging_by_broker(db, current_user.tenant_id, as_of or datetime.utcnow().date())


@router.get("/brokers", response_model=List[BrokerReceivableRow])
def get_brokers(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_broker_receivables(db, current_user.tenant_id, as_of or datetime.utcnow().date())


@router.get("/collection-rate", response_model=CollectionRateResponse)
def get_collection_rate_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_collection_rate(db, current_user.tenant_id)


@router.get("/ready-to-invoice", response_model=List[ReadyToInvoiceRow])
def get_ready_to_invoice_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_ready_to_invoice(db, current_user.tenant_id)
