from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from haulbook.auth import get_current_user
from haulbook.billing.factoring import factor_order
from haulbook.billing.schemas import FactorOrderRequest, FactorOrderResponse
from haulbook.db import get_db
from haulbook.models import User

router = APIRouter(prefix="/api/orders", tags=["billing"])


@router.post("/{order_id}/factor", response_model=FactorOrderResponse)
def factor_order_endpoint(
    order_id: int,
    payload: Optional[FactorOrderRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    as_of = payload.as_of if payload else None
    try:
        return factor_order(db, current_user.tenant_id, order_id, as_of=as_of)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
