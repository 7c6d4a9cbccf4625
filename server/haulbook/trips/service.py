from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.orm import Session

from haulbook.models import Trip
from haulbook.trips.calculations import DriverPayConfig, TripOrderInput, calculate_trip_financials


def get_trip_financials(db: Session, tenant_id: int, trip_id: int) -> Dict[str, Any]:
    trip = db.query(Trip).filter(Trip.id == trip_id, Trip.tenant_id == tenant_id).first()
    if not trip:
        raise LookupError("Trip not found.")

    orders = [
        TripOrderInput(
            revenue=order.revenue,
            broker_fee=order.broker_fee,
            local_fee=order.local_fee,
            distance_miles=order.distance_miles,
            driver_pay_rate_override=order.driver_pay_rate_override,
        )
        for order in trip.orders
        if order.status != "cancelled"
    ]
    driver = None
    if trip.driver is not None:
        driver = DriverPayConfig(
            driver_type=trip.driver.driver_type,
            pay_type=trip.driver.pay_type,
            pay_rate=trip.driver.pay_rate,
        )

    financials = calculate_trip_financials(
        orders,
        driver,
        [expense.amount for expense in trip.expenses],
        trip.carrier_pay,
    )
    return {"trip_id": trip.id, "trip_number": trip.trip_number, **financials.as_dict()}
