"""Tests for cancellation and the 24 hour refund window."""

import uuid
from datetime import date, timedelta

import pytest

from conftest import NOW, local
from slotbook.core.errors import ConflictError, NotFoundError, TooLateError
from slotbook.models import BookingStatus, SlotStatus
from slotbook.services.cancellation import CancellationService, is_refund_eligible
from slotbook.services.reservations import ReservationService

WEDNESDAY = date(2030, 6, 12)
TUESDAY = date(2030, 6, 11)


@pytest.fixture
def service(db, clock):
    return CancellationService(db, clock=clock)


class TestRefundWindow:
    def test_boundary_is_inclusive(self):
        assert is_refund_eligible(NOW + timedelta(hours=24), NOW)
        assert not is_refund_eligible(NOW + timedelta(hours=24) - timedelta(seconds=1), NOW)


class TestCancel:
    def test_early_cancellation_is_refundable_and_frees_the_slot(self, db, service, make_slot, make_booking):
        slot = make_slot(WEDNESDAY, "14:00")
        booking = make_booking(slot)

        result = service.cancel(booking.id)

        assert result.booking_id == booking.id
        assert result.status == BookingStatus.CANCELLED
        assert result.refund_eligible is True
        assert result.slot_freed is True
        assert result.deposit_cents == 1598
        db.refresh(booking)
        db.refresh(slot)
        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancelled_at == NOW
        assert slot.status == SlotStatus.PUBLISHED
        assert slot.booked_at is None

    def test_exactly_24_hours_before_is_refundable(self, service, make_slot, make_booking):
        slot = make_slot(TUESDAY, "10:00")
        assert slot.start_time - NOW == timedelta(hours=24)

        result = service.cancel(make_booking(slot).id)

        assert result.refund_eligible is True

    def test_inside_24_hours_is_not_refundable(self, clock, service, make_slot, make_booking):
        booking = make_booking(make_slot(TUESDAY, "10:00"))
        clock.advance(minutes=1)

        result = service.cancel(booking.id)

        assert result.refund_eligible is False
        assert result.status == BookingStatus.CANCELLED

    def test_started_session_is_too_late(self, db, clock, service, make_slot, make_booking):
        slot = make_slot(TUESDAY, "10:00")
        booking = make_booking(slot)
        clock.now = local(TUESDAY, "10:00")

        with pytest.raises(TooLateError):
            service.cancel(booking.id)

        db.refresh(booking)
        db.refresh(slot)
        assert booking.status == BookingStatus.PENDING
        assert slot.status == SlotStatus.BOOKED

    def test_cancelling_twice(self, service, make_slot, make_booking):
        booking = make_booking(make_slot(WEDNESDAY, "14:00"))
        service.cancel(booking.id)
        with pytest.raises(ConflictError):
            service.cancel(booking.id)

    def test_confirmed_booking_can_be_cancelled(self, db, clock, service, make_slot, make_booking):
        booking = make_booking(make_slot(WEDNESDAY, "14:00"))
        ReservationService(db, clock=clock).confirm_payment(booking.id)

        assert service.cancel(booking.id).status == BookingStatus.CANCELLED

    def test_unknown_booking(self, service):
        with pytest.raises(NotFoundError):
            service.cancel(uuid.uuid4())

    def test_freed_slot_can_be_booked_again(self, service, make_slot, make_booking):
        slot = make_slot(WEDNESDAY, "14:00")
        service.cancel(make_booking(slot).id)

        again = make_booking(slot, email="bo@example.com")

        assert again.status == BookingStatus.PENDING
        assert again.slot_id == slot.id
