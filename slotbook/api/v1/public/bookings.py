from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status

from slotbook.api.deps import (
    get_cancellation_service,
    get_discount_service,
    get_pricing_service,
    get_reservation_service,
)
from slotbook.services import notifications
from slotbook.services.cancellation import CancellationService
from slotbook.services.discounts import DiscountService
from slotbook.services.pricing import PricingService
from slotbook.services.reservations import CustomerDetails, ReservationService
from slotbook.schemas.booking import (
    QuoteRequest,
    Quote,
    BookingCreate,
    Booking as BookingSchema,
    DiscountApply,
    BookingCancelResponse,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/quote", response_model=Quote)
def quote_booking(
    payload: QuoteRequest,
    service: PricingService = Depends(get_pricing_service),
):
    """Total, deposit and rest in cents for a group size."""
    return service.quote(payload.partner_id, payload.participant_count, payload.start_time)


@router.post("", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Reserve a published slot. The booking stays PENDING until the deposit
    is confirmed; two requests for the same slot yield one booking and a 409.
    """
    booking = service.reserve(
        payload.partner_id,
        payload.start_time,
        payload.participant_count,
        CustomerDetails(
            name=payload.customer_name,
            email=payload.customer_email,
            phone=payload.customer_phone,
        ),
    )
    background_tasks.add_task(notifications.booking_created, booking.id, booking.deposit_amount_cents)
    return booking


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    return service.get_booking(booking_id)


@router.post("/{booking_id}/discount", response_model=BookingSchema)
def apply_discount(
    booking_id: UUID,
    payload: DiscountApply,
    service: DiscountService = Depends(get_discount_service),
):
    """Apply a code, or send `null`/blank to remove the current discount."""
    return service.apply(booking_id, payload.code)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
def cancel_booking(
    booking_id: UUID,
    background_tasks: BackgroundTasks,
    service: CancellationService = Depends(get_cancellation_service),
):
    result = service.cancel(booking_id)
    background_tasks.add_task(
        notifications.booking_cancelled,
        result.booking_id,
        result.refund_eligible,
        result.deposit_cents,
    )
    return result
