"""Tests for month counts, day detail and the public slot list."""

from datetime import date

import pytest

from conftest import TODAY, local
from slotbook.core.errors import InvalidInputError
from slotbook.models import SlotStatus
from slotbook.services.availability import AvailabilityService, BaselineMode

WEDNESDAY = date(2030, 6, 12)


@pytest.fixture
def service(db, clock):
    return AvailabilityService(db, clock=clock)


@pytest.fixture
def busy_wednesday(make_slot):
    return {
        "published": make_slot(WEDNESDAY, "14:00", SlotStatus.PUBLISHED),
        "booked": make_slot(WEDNESDAY, "15:00", SlotStatus.BOOKED),
        "draft": make_slot(WEDNESDAY, "16:00", SlotStatus.DRAFT),
        "off_grid": make_slot(WEDNESDAY, "09:30", SlotStatus.DRAFT),
    }


def _day(result, day):
    return next(d for d in result.days if d.date == day)


class TestBaselineMode:
    def test_parse_is_case_insensitive(self):
        assert BaselineMode.parse("FUTURE") == BaselineMode.FUTURE
        assert BaselineMode.parse(BaselineMode.NONE) == BaselineMode.NONE

    def test_unknown_mode(self):
        with pytest.raises(InvalidInputError):
            BaselineMode.parse("weekly")


class TestMonthCounts:
    def test_empty_month_is_all_virtual_drafts(self, service, partner):
        result = service.month_counts(partner.id, "2030-06")

        assert result.month == "2030-06"
        assert result.timezone == "Europe/Amsterdam"
        assert result.baseline_mode == BaselineMode.ALL
        assert result.capacity_per_day == 12
        assert result.schedule_size == 12
        assert len(result.days) == 30
        for day in result.days:
            assert (day.draft, day.published, day.booked) == (12, 0, 0)
            assert day.remaining == 12
            assert day.has_draft and not day.has_published and not day.has_booked

    def test_counts_per_status(self, service, partner, busy_wednesday):
        day = _day(service.month_counts(partner.id, "2030-06"), WEDNESDAY)

        assert day.published == 1
        assert day.booked == 1
        assert day.materialized_draft == 1
        assert day.draft == 10
        assert day.remaining == 11
        assert day.has_draft and day.has_published and day.has_booked

    def test_counts_never_exceed_schedule_size(self, service, partner, busy_wednesday):
        result = service.month_counts(partner.id, "2030-06")
        for day in result.days:
            assert day.draft + day.published + day.booked <= result.schedule_size
            assert day.remaining >= 0

    def test_future_mode_zeroes_past_days(self, service, partner):
        result = service.month_counts(partner.id, "2030-06", baseline_mode="future")

        assert result.baseline_mode == BaselineMode.FUTURE
        assert _day(result, date(2030, 6, 9)).remaining == 0
        assert _day(result, TODAY).remaining == 12

    def test_none_mode_uses_materialised_drafts(self, service, partner, busy_wednesday):
        result = service.month_counts(partner.id, "2030-06", baseline_mode="none")

        assert _day(result, WEDNESDAY).remaining == 1
        assert _day(result, date(2030, 6, 11)).remaining == 0

    def test_capacity_override_is_echoed(self, service, partner, busy_wednesday):
        result = service.month_counts(partner.id, "2030-06", capacity_per_day=5)

        assert result.capacity_per_day == 5
        assert _day(result, WEDNESDAY).remaining == 4
        assert _day(result, WEDNESDAY).capacity == 5

    def test_remaining_is_floored_at_zero(self, service, partner, busy_wednesday):
        result = service.month_counts(partner.id, "2030-06", capacity_per_day=0)
        assert _day(result, WEDNESDAY).remaining == 0

    def test_next_month_rows_are_not_counted(self, service, partner, make_slot):
        make_slot(date(2030, 7, 1), "09:00", SlotStatus.PUBLISHED)
        result = service.month_counts(partner.id, "2030-06")
        assert sum(d.published for d in result.days) == 0

    @pytest.mark.parametrize(
        "month,kwargs",
        [
            ("2030-13", {}),
            ("june", {}),
            ("2030-06", {"capacity_per_day": -1}),
            ("2030-06", {"baseline_mode": "weekly"}),
        ],
    )
    def test_invalid_input(self, service, partner, month, kwargs):
        with pytest.raises(InvalidInputError):
            service.month_counts(partner.id, month, **kwargs)


class TestDayDetail:
    def test_empty_day_is_full_virtual_schedule(self, service, partner):
        slots = service.day_detail(partner.id, WEDNESDAY)

        assert len(slots) == 12
        assert slots[0].start_time == local(WEDNESDAY, "09:00")
        assert slots[-1].start_time == local(WEDNESDAY, "20:00")
        assert all(s.virtual and s.slot_id is None and s.status == SlotStatus.DRAFT for s in slots)

    def test_persisted_rows_win_over_virtual_drafts(self, service, partner, busy_wednesday):
        slots = service.day_detail(partner.id, WEDNESDAY)
        by_start = {s.start_time: s for s in slots}

        # 12 grid entries plus the off-grid 09:30 row
        assert len(slots) == 13
        assert [s.start_time for s in slots] == sorted(by_start)
        published = by_start[local(WEDNESDAY, "14:00")]
        assert published.status == SlotStatus.PUBLISHED
        assert published.slot_id == busy_wednesday["published"].id
        assert not published.virtual
        assert by_start[local(WEDNESDAY, "15:00")].status == SlotStatus.BOOKED
        assert not by_start[local(WEDNESDAY, "09:30")].virtual
        assert sum(1 for s in slots if s.virtual) == 9


class TestPublishedSlots:
    def test_only_future_published_slots(self, service, partner, make_slot):
        make_slot(TODAY, "09:00", SlotStatus.PUBLISHED)
        upcoming = make_slot(TODAY, "15:00", SlotStatus.PUBLISHED)
        make_slot(TODAY, "16:00", SlotStatus.DRAFT)

        slots = service.published_slots(partner.id, TODAY)

        assert [s.slot_id for s in slots] == [upcoming.id]
