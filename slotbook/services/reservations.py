"""Reservation: turning a PUBLISHED slot into a BOOKED slot with a Booking.

The slot status flip is a conditional UPDATE (PUBLISHED -> BOOKED) and the
bookings table carries a partial unique index on live bookings per slot, so
two racing requests for the same slot produce exactly one Booking.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slotbook.core.config import settings
from slotbook.core.errors import ConflictError, InvalidInputError, NotFoundError, TooLateError
from slotbook.db.types import utcnow
from slotbook.models.booking import MAX_PARTICIPANTS, Booking, BookingStatus
from slotbook.models.customer import Customer
from slotbook.models.discount_code import DiscountCode
from slotbook.models.slot import SlotStatus
from slotbook.services.cancellation import release_booking
from slotbook.services.partners import get_partner
from slotbook.services.pricing import compute_base_total, split_deposit
from slotbook.services.slot_store import SlotStore
from slotbook.utils.timeslots import as_local, partner_zone

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CustomerDetails:
    name: str
    email: str
    phone: Optional[str] = None


class ReservationService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.store = SlotStore(db)
        self.clock = clock

    def _customer_for(self, details: CustomerDetails) -> Customer:
        email = details.email.strip().lower()
        customer = self.db.scalar(select(Customer).where(Customer.email == email).limit(1))
        if customer is None:
            customer = Customer(name=details.name.strip(), email=email, phone=details.phone)
            self.db.add(customer)
        else:
            customer.name = details.name.strip() or customer.name
            if details.phone:
                customer.phone = details.phone
        self.db.flush()
        return customer

    def reserve(
        self,
        partner_id: UUID,
        start_time: datetime,
        participant_count: int,
        customer: CustomerDetails,
    ) -> Booking:
        """Reserve the published slot at ``start_time``; the booking starts PENDING."""
        if participant_count < 1 or participant_count > MAX_PARTICIPANTS:
            raise InvalidInputError(f"Participant count must be between 1 and {MAX_PARTICIPANTS}")

        partner = get_partner(self.db, partner_id)
        start = as_local(start_time, partner_zone(partner)).astimezone(timezone.utc)
        now = self.clock()

        slot = self.store.get_by_start(partner.id, start)
        if slot is None:
            raise NotFoundError("No bookable slot at this time")
        if slot.start_time <= now:
            raise TooLateError("This session has already started")
        status = SlotStatus(slot.status)
        if status == SlotStatus.BOOKED:
            raise ConflictError("Slot is already booked")
        if status != SlotStatus.PUBLISHED:
            raise ConflictError("Slot is not open for booking")

        try:
            buyer = self._customer_for(customer)
            quote = split_deposit(
                compute_base_total(partner.price_1pax_cents, partner.price_2plus_cents, participant_count),
                partner.fee_percent,
            )
            if not self.store.transition(slot, SlotStatus.PUBLISHED, SlotStatus.BOOKED, booked_at=now):
                logger.warning("Lost reservation race for slot %s.", slot.id)
                raise ConflictError("Slot was just booked by someone else")

            booking = Booking(
                slot_id=slot.id,
                partner_id=partner.id,
                customer_id=buyer.id,
                participant_count=participant_count,
                status=BookingStatus.PENDING,
                total_amount_cents=quote.total_cents,
                deposit_amount_cents=quote.deposit_cents,
                rest_amount_cents=quote.rest_cents,
                discount_amount_cents=0,
                created_at=now,
            )
            self.db.add(booking)
            self.db.flush()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Duplicate live booking rejected for slot %s.", slot.id)
            raise ConflictError("Slot was just booked by someone else")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info("Reserved slot %s as booking %s (%d cents).", slot.id, booking.id, booking.total_amount_cents)
        return booking

    def get_booking(self, booking_id: UUID) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def confirm_payment(self, booking_id: UUID) -> Booking:
        """
        Deposit received: PENDING -> CONFIRMED. The attached discount code
        counts one redemption here and nowhere else.
        """
        try:
            booking = self.db.scalar(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
            if booking is None:
                raise NotFoundError("Booking not found")
            current = BookingStatus(booking.status)
            if current == BookingStatus.CONFIRMED:
                return booking
            if not current.can_transition(BookingStatus.CONFIRMED):
                raise ConflictError(f"Booking is {current.value.lower()}")

            booking.status = BookingStatus.CONFIRMED
            booking.confirmed_at = self.clock()
            if booking.discount_code_id is not None:
                self.db.execute(
                    update(DiscountCode)
                    .where(DiscountCode.id == booking.discount_code_id)
                    .values(redeemed_count=DiscountCode.redeemed_count + 1)
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info("Confirmed booking %s.", booking.id)
        return booking

    def release_unpaid(self, older_than_minutes: Optional[int] = None) -> int:
        """Cancel PENDING bookings older than the hold window and free their slots."""
        minutes = settings.UNPAID_HOLD_MINUTES if older_than_minutes is None else older_than_minutes
        now = self.clock()
        cutoff = now - timedelta(minutes=minutes)

        stale = list(
            self.db.scalars(
                select(Booking).where(
                    Booking.status == BookingStatus.PENDING,
                    Booking.created_at < cutoff,
                )
            )
        )
        try:
            for booking in stale:
                release_booking(self.db, booking, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if stale:
            logger.info("Released %d unpaid booking(s).", len(stale))
        return len(stale)
