from datetime import date, datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from haulbook.auth import get_current_user
from haulbook.db import get_db
from haulbook.financials.periods import resolve_period
from haulbook.financials.schemas import KPIReportResponse, MonthlyPnLResponse, PnLReportResponse
from haulbook.financials.service import get_kpi_report, get_pnl_report, get_pnl_trend
from haulbook.models import User

router = APIRouter(prefix="/api/financials", tags=["financials"])


def _resolve_window(
    preset: Optional[str],
    start: Optional[date],
    end: Optional[date],
    as_of: Optional[date],
) -> Tuple[date, date]:
    if start or end:
        if not (start and end):
            raise ValueError("Both start and end are required for a custom period.")
        return start, end
    return resolve_period(preset or "mtd", as_of or datetime.utcnow().date())


@router.get("/pnl", response_model=PnLReportResponse)
def get_pnl(
    preset: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    as_of: Optional[date] = Query(None),
    basis: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        period_start, period_end = _resolve_window(preset, start, end, as_of)
        return get_pnl_report(db, current_user.tenant_id, period_start, period_end, basis)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/pnl/trend", response_model=List[MonthlyPnLResponse])
def get_pnl_trend_endpoint(
    months: Optional[int] = Query(None, ge=1, le=24),
    as_of: Optional[date] = Query(None),
    basis: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return get_pnl_trend(db, current_user.tenant_id, months=months, as_of=as_of, basis=basis)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/kpis", response_model=KPIReportResponse)
def get_kpis(
    preset: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    as_of: Optional[date] = Query(None),
    basis: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        period_start, period_end = _resolve_window(preset, start, end, as_of)
        return get_kpi_report(db, current_user.tenant_id, period_start, period_end, basis)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
