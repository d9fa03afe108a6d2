from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends

from slotbook.api.deps import Principal, get_current_admin, get_reservation_service
from slotbook.services.reservations import ReservationService
from slotbook.schemas.booking import (
    Booking as BookingSchema,
    ReleaseUnpaid,
    ReleaseUnpaidResult,
)

router = APIRouter(prefix="/admin", tags=["Admin - Bookings"])


@router.post("/bookings/{booking_id}/confirm", response_model=BookingSchema)
def confirm_booking(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    admin: Principal = Depends(get_current_admin),
):
    """Payment webhook: the deposit was received. Safe to call twice."""
    return service.confirm_payment(booking_id)


@router.post("/maintenance/release-unpaid", response_model=ReleaseUnpaidResult)
def release_unpaid(
    payload: Optional[ReleaseUnpaid] = None,
    service: ReservationService = Depends(get_reservation_service),
    admin: Principal = Depends(get_current_admin),
):
    """Cancel stale PENDING bookings and put their slots back on sale."""
    older_than = payload.older_than_minutes if payload else None
    released = service.release_unpaid(older_than)
    return ReleaseUnpaidResult(released=released)
