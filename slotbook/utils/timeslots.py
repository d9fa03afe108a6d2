from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotbook.core.config import settings
from slotbook.core.errors import InvalidInputError


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" string into a time, rejecting anything else."""
    parts = value.strip().split(":") if isinstance(value, str) else []
    if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if hour > 23 or minute > 59:
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM")
    return time(hour, minute)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


@dataclass(frozen=True)
class ScheduleTemplate:
    """
    The canonical daily grid of possible slot start times for a partner.

    Times without a persisted slot row are "virtual" drafts. The grid is data:
    it comes from settings unless the partner row carries its own list.
    """

    times: Tuple[time, ...]
    duration: timedelta

    @classmethod
    def default(cls) -> "ScheduleTemplate":
        hours = range(settings.SCHEDULE_FIRST_HOUR, settings.SCHEDULE_LAST_HOUR + 1)
        return cls(
            times=tuple(time(h, 0) for h in hours),
            duration=timedelta(minutes=settings.SLOT_DURATION_MINUTES),
        )

    @classmethod
    def from_strings(cls, values: Iterable[str], duration: Optional[timedelta] = None) -> "ScheduleTemplate":
        return cls(
            times=tuple(sorted({parse_hhmm(v) for v in values})),
            duration=duration or timedelta(minutes=settings.SLOT_DURATION_MINUTES),
        )

    @classmethod
    def for_partner(cls, partner) -> "ScheduleTemplate":
        if partner.schedule_times:
            return cls.from_strings(partner.schedule_times)
        return cls.default()

    @property
    def size(self) -> int:
        return len(self.times)

    def contains(self, value: time) -> bool:
        return value in self.times

    def starts_on(self, day: date, tz: ZoneInfo) -> Iterator[datetime]:
        """UTC start datetimes of every template entry on a partner-local day."""
        for t in self.times:
            yield local_to_utc(day, t, tz)


def partner_zone(partner) -> ZoneInfo:
    name = getattr(partner, "timezone", None) or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        raise InvalidInputError(f"Unknown timezone '{name}'")


def local_to_utc(day: date, t: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, t, tzinfo=tz).astimezone(timezone.utc)


def as_local(value: datetime, tz: ZoneInfo) -> datetime:
    """Interpret naive values as partner-local; convert aware values to it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def local_day_bounds(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """[start, end) of a partner-local calendar day, in UTC."""
    return local_to_utc(day, time(0, 0), tz), local_to_utc(day + timedelta(days=1), time(0, 0), tz)


def parse_month(value: str) -> date:
    """Parse "YYYY-MM" into the first day of that month."""
    try:
        year, month = (int(p) for p in value.split("-"))
        return date(year, month, 1)
    except (ValueError, AttributeError):
        raise InvalidInputError(f"Invalid month '{value}', expected YYYY-MM")


def days_in_month(first: date) -> Iterator[date]:
    day = first
    while day.month == first.month:
        yield day
        day += timedelta(days=1)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Inclusive date range."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
