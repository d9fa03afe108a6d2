"""Tests for reserving slots, payment confirmation and unpaid holds."""

import uuid
from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from conftest import NOW, local
from slotbook.core.errors import ConflictError, InvalidInputError, NotFoundError, TooLateError
from slotbook.models import Booking, BookingStatus, Customer, SlotStatus
from slotbook.services.cancellation import CancellationService
from slotbook.services.reservations import CustomerDetails, ReservationService

WEDNESDAY = date(2030, 6, 12)
ANA = CustomerDetails(name="Ana de Vries", email="Ana@Example.com", phone="+31612345678")


@pytest.fixture
def service(db, clock):
    return ReservationService(db, clock=clock)


def _booking_count(db):
    return db.scalar(select(func.count()).select_from(Booking))


class TestReserve:
    def test_books_a_published_slot(self, db, service, partner, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")

        booking = service.reserve(partner.id, slot.start_time, 2, ANA)

        assert booking.status == BookingStatus.PENDING
        assert booking.slot_id == slot.id
        assert booking.participant_count == 2
        assert (booking.total_amount_cents, booking.deposit_amount_cents, booking.rest_amount_cents) == (
            7990,
            1598,
            6392,
        )
        assert booking.created_at == NOW
        db.refresh(slot)
        assert slot.status == SlotStatus.BOOKED
        assert slot.booked_at == NOW

    def test_naive_start_is_partner_local(self, service, partner, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")
        booking = service.reserve(partner.id, datetime(2030, 6, 12, 14, 0), 1, ANA)
        assert booking.slot_id == slot.id
        assert booking.total_amount_cents == 4995

    def test_customer_is_reused_by_email(self, db, service, partner, make_slot):
        service.reserve(partner.id, make_slot(WEDNESDAY, "14:00").start_time, 1, ANA)
        service.reserve(
            partner.id,
            make_slot(WEDNESDAY, "15:00").start_time,
            1,
            CustomerDetails(name="Ana de Vries", email="ana@example.com"),
        )

        customers = list(db.scalars(select(Customer)))
        assert len(customers) == 1
        assert customers[0].email == "ana@example.com"
        assert customers[0].phone == "+31612345678"

    def test_virtual_slot_is_not_bookable(self, service, partner):
        with pytest.raises(NotFoundError):
            service.reserve(partner.id, local(WEDNESDAY, "14:00"), 2, ANA)

    @pytest.mark.parametrize("status", [SlotStatus.DRAFT, SlotStatus.BOOKED])
    def test_only_published_slots(self, db, service, partner, make_slot, status):
        slot = make_slot(WEDNESDAY, "14:00", status)
        with pytest.raises(ConflictError):
            service.reserve(partner.id, slot.start_time, 2, ANA)
        assert _booking_count(db) == 0

    def test_started_slot(self, clock, service, partner, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")
        clock.now = slot.start_time
        with pytest.raises(TooLateError):
            service.reserve(partner.id, slot.start_time, 2, ANA)

    @pytest.mark.parametrize("count", [0, 4])
    def test_participant_bounds(self, service, partner, make_slot, count):
        slot = make_slot(WEDNESDAY, "14:00")
        with pytest.raises(InvalidInputError):
            service.reserve(partner.id, slot.start_time, count, ANA)

    def test_unknown_partner(self, service, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")
        with pytest.raises(NotFoundError):
            service.reserve(uuid.uuid4(), slot.start_time, 2, ANA)


class TestReservationRace:
    def test_two_sessions_racing_for_one_slot(self, db, session_factory, clock, partner, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")
        first_db = session_factory()
        second_db = session_factory()
        try:
            # Both requests have read the slot as PUBLISHED before either writes.
            first_db.get(type(slot), slot.id)
            second_db.get(type(slot), slot.id)

            winner = ReservationService(first_db, clock=clock).reserve(partner.id, slot.start_time, 2, ANA)
            with pytest.raises(ConflictError):
                ReservationService(second_db, clock=clock).reserve(
                    partner.id,
                    slot.start_time,
                    3,
                    CustomerDetails(name="Bo", email="bo@example.com"),
                )
        finally:
            first_db.close()
            second_db.close()

        db.expire_all()
        bookings = list(db.scalars(select(Booking)))
        assert [b.id for b in bookings] == [winner.id]
        assert db.get(type(slot), slot.id).status == SlotStatus.BOOKED


class TestConfirmPayment:
    def test_pending_becomes_confirmed(self, service, partner, make_slot):
        booking = service.reserve(partner.id, make_slot(WEDNESDAY, "14:00").start_time, 2, ANA)

        confirmed = service.confirm_payment(booking.id)

        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.confirmed_at == NOW

    def test_cancelled_booking_cannot_be_confirmed(self, db, clock, service, partner, make_slot):
        booking = service.reserve(partner.id, make_slot(WEDNESDAY, "14:00").start_time, 2, ANA)
        CancellationService(db, clock=clock).cancel(booking.id)
        with pytest.raises(ConflictError):
            service.confirm_payment(booking.id)

    def test_unknown_booking(self, service):
        with pytest.raises(NotFoundError):
            service.confirm_payment(uuid.uuid4())


class TestReleaseUnpaid:
    def test_stale_pending_bookings_are_released(self, db, clock, service, partner, make_slot):
        slot = make_slot(WEDNESDAY, "14:00")
        booking = service.reserve(partner.id, slot.start_time, 2, ANA)
        clock.advance(minutes=31)

        assert service.release_unpaid() == 1

        db.refresh(booking)
        db.refresh(slot)
        assert booking.status == BookingStatus.CANCELLED
        assert slot.status == SlotStatus.PUBLISHED

    def test_fresh_and_confirmed_bookings_stay(self, clock, service, partner, make_slot):
        pending = service.reserve(partner.id, make_slot(WEDNESDAY, "14:00").start_time, 2, ANA)
        paid = service.reserve(partner.id, make_slot(WEDNESDAY, "15:00").start_time, 2, ANA)
        service.confirm_payment(paid.id)
        clock.advance(minutes=10)

        assert service.release_unpaid() == 0
        assert service.release_unpaid(older_than_minutes=5) == 1
        assert service.get_booking(pending.id).status == BookingStatus.CANCELLED
        assert service.get_booking(paid.id).status == BookingStatus.CONFIRMED
