"""Booking cancellation and the refund-eligibility policy."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from slotbook.core.config import settings
from slotbook.core.errors import ConflictError, NotFoundError, TooLateError
from slotbook.db.types import utcnow
from slotbook.models.booking import Booking, BookingStatus
from slotbook.models.slot import SlotStatus
from slotbook.services.slot_store import SlotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    booking_id: UUID
    status: BookingStatus
    refund_eligible: bool
    slot_freed: bool
    deposit_cents: int


def is_refund_eligible(start_time: datetime, now: datetime) -> bool:
    """Refund only when the session is at least the refund window away."""
    return start_time - now >= timedelta(hours=settings.REFUND_WINDOW_HOURS)


def release_booking(db: Session, booking: Booking, now: datetime) -> bool:
    """
    Mark a booking CANCELLED and hand its slot back to PUBLISHED.
    Returns whether the slot was freed. The caller commits.
    """
    current = BookingStatus(booking.status)
    if not current.can_transition(BookingStatus.CANCELLED):
        raise ConflictError(f"Booking is already {current.value.lower()}")
    booking.status = BookingStatus.CANCELLED
    booking.cancelled_at = now
    db.flush()

    slot = booking.slot
    if slot is None or SlotStatus(slot.status) != SlotStatus.BOOKED:
        logger.warning("Booking %s had no booked slot to release.", booking.id)
        return False
    return SlotStore(db).transition(slot, SlotStatus.BOOKED, SlotStatus.PUBLISHED, booked_at=None)


class CancellationService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def cancel(self, booking_id: UUID) -> CancellationResult:
        """
        Cancel a booking whose session has not started yet. The refund flag
        is advisory; moving money is left to the payment collaborator.
        """
        try:
            booking = self.db.scalar(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
            if booking is None or booking.slot is None:
                raise NotFoundError("Booking not found")

            now = self.clock()
            start = booking.slot.start_time
            if start <= now:
                raise TooLateError("The session has already started; cancellation is no longer possible")

            refund_eligible = is_refund_eligible(start, now)
            slot_freed = release_booking(self.db, booking, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Cancelled booking %s (refund eligible: %s, slot freed: %s).",
            booking.id, refund_eligible, slot_freed,
        )
        return CancellationResult(
            booking_id=booking.id,
            status=BookingStatus.CANCELLED,
            refund_eligible=refund_eligible,
            slot_freed=slot_freed,
            deposit_cents=booking.deposit_amount_cents,
        )
