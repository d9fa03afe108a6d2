"""Calendar aggregation over persisted and virtual slots."""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from slotbook.core.config import settings
from slotbook.core.errors import InvalidInputError
from slotbook.db.types import utcnow
from slotbook.models.partner import Partner
from slotbook.models.slot import SlotStatus
from slotbook.services.partners import get_partner
from slotbook.services.slot_store import SlotStore
from slotbook.utils.timeslots import (
    ScheduleTemplate,
    days_in_month,
    local_day_bounds,
    parse_month,
    partner_zone,
)


class BaselineMode(str, enum.Enum):
    """How "remaining" capacity is derived for calendar colouring."""

    ALL = "all"        # capacity - published, every day
    FUTURE = "future"  # as ALL, but 0 for days before today
    NONE = "none"      # materialised drafts only, no baseline subtraction

    @classmethod
    def parse(cls, value) -> "BaselineMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInputError(f"Unknown baseline mode '{value}'")


@dataclass
class DayCounts:
    date: date
    draft: int = 0
    published: int = 0
    booked: int = 0
    materialized_draft: int = 0
    capacity: int = 0
    remaining: int = 0
    has_draft: bool = False
    has_published: bool = False
    has_booked: bool = False


@dataclass
class MonthAvailability:
    month: str
    timezone: str
    capacity_per_day: int
    baseline_mode: BaselineMode
    schedule_size: int
    days: List[DayCounts] = field(default_factory=list)


@dataclass
class DaySlot:
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    slot_id: Optional[UUID] = None
    virtual: bool = True


def remaining_capacity(
    mode: BaselineMode,
    counts: DayCounts,
    capacity: int,
    is_past: bool,
) -> int:
    if mode == BaselineMode.NONE:
        return max(0, counts.materialized_draft)
    if mode == BaselineMode.FUTURE and is_past:
        return 0
    return max(0, capacity - counts.published)


class AvailabilityService:
    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        template_for: Callable[[Partner], ScheduleTemplate] = ScheduleTemplate.for_partner,
    ) -> None:
        self.db = db
        self.store = SlotStore(db)
        self.clock = clock
        self.template_for = template_for

    def month_counts(
        self,
        partner_id: UUID,
        month: str,
        capacity_per_day: Optional[int] = None,
        baseline_mode=None,
    ) -> MonthAvailability:
        """
        Per-day draft/published/booked counts for a partner-local month.

        Only rows on the partner's schedule grid are counted, so the three
        counts of a day never add up to more than the schedule size.
        """
        partner = get_partner(self.db, partner_id)
        first = parse_month(month)
        mode = BaselineMode.parse(baseline_mode or settings.DEFAULT_BASELINE_MODE)
        capacity = partner.daily_capacity if capacity_per_day is None else capacity_per_day
        if capacity is None or capacity < 0:
            raise InvalidInputError("capacity_per_day must be zero or positive")

        tz = partner_zone(partner)
        template = self.template_for(partner)
        today = self.clock().astimezone(tz).date()

        month_days = list(days_in_month(first))
        range_start, _ = local_day_bounds(month_days[0], tz)
        _, range_end = local_day_bounds(month_days[-1], tz)

        by_day: Dict[date, DayCounts] = {d: DayCounts(date=d) for d in month_days}
        for slot in self.store.list_between(partner.id, range_start, range_end):
            local = slot.start_time.astimezone(tz)
            if not template.contains(local.time()):
                continue
            counts = by_day.get(local.date())
            if counts is None:
                continue
            status = SlotStatus(slot.status)
            if status == SlotStatus.PUBLISHED:
                counts.published += 1
            elif status == SlotStatus.BOOKED:
                counts.booked += 1
            else:
                counts.materialized_draft += 1

        result = MonthAvailability(
            month=first.strftime("%Y-%m"),
            timezone=tz.key,
            capacity_per_day=capacity,
            baseline_mode=mode,
            schedule_size=template.size,
        )
        for day in month_days:
            counts = by_day[day]
            counts.draft = max(0, template.size - counts.published - counts.booked)
            counts.capacity = capacity
            counts.remaining = remaining_capacity(mode, counts, capacity, is_past=day < today)
            counts.has_draft = counts.draft > 0
            counts.has_published = counts.published > 0
            counts.has_booked = counts.booked > 0
            result.days.append(counts)
        return result

    def day_detail(self, partner_id: UUID, day: date) -> List[DaySlot]:
        """
        The full canonical schedule of one partner-local day, merged with the
        persisted rows keyed by start time. A persisted row always wins over
        the virtual draft at the same time.
        """
        partner = get_partner(self.db, partner_id)
        tz = partner_zone(partner)
        template = self.template_for(partner)

        merged: Dict[datetime, DaySlot] = {
            start: DaySlot(start_time=start, end_time=start + template.duration, status=SlotStatus.DRAFT)
            for start in template.starts_on(day, tz)
        }
        start, end = local_day_bounds(day, tz)
        for slot in self.store.list_between(partner.id, start, end):
            merged[slot.start_time] = DaySlot(
                start_time=slot.start_time,
                end_time=slot.end_time,
                status=SlotStatus(slot.status),
                slot_id=slot.id,
                virtual=False,
            )
        return [merged[k] for k in sorted(merged)]

    def published_slots(self, partner_id: UUID, day: date) -> List[DaySlot]:
        """Bookable slots of one day that have not started yet."""
        partner = get_partner(self.db, partner_id)
        tz = partner_zone(partner)
        start, end = local_day_bounds(day, tz)
        now = self.clock()
        rows = self.store.list_between(partner.id, start, end, status=SlotStatus.PUBLISHED)
        return [
            DaySlot(
                start_time=slot.start_time,
                end_time=slot.end_time,
                status=SlotStatus.PUBLISHED,
                slot_id=slot.id,
                virtual=False,
            )
            for slot in rows
            if slot.start_time > now
        ]
