from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from haulbook.auth import get_current_user
from haulbook.db import get_db
from haulbook.models import User
from haulbook.trips.schemas import TripFinancialsResponse
from haulbook.trips.service import get_trip_financials

router = APIRouter(prefix="/api/trips", tags=["trips"])


@router.get("/{trip_id}/financials", response_model=TripFinancialsResponse)
def get_trip_financials_endpoint(
    trip_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return get_trip_financials(db, current_user.tenant_id, trip_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
