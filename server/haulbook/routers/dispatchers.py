from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from haulbook.auth import get_current_user
from haulbook.db import get_db
from haulbook.dispatchers.schemas import DispatcherPerformanceRow
from haulbook.dispatchers.service import get_dispatcher_performance
from haulbook.models import User

router = APIRouter(prefix="/api/dispatchers", tags=["dispatchers"])


@router.get("/performance", response_model=List[DispatcherPerformanceRow])
def get_performance(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return get_dispatcher_performance(db, current_user.tenant_id, start=start, end=end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
