"""Slot lifecycle: series generation, publish / unpublish and bulk delete.

State machine per slot (persisted row or virtual draft)::

    DRAFT --publish--> PUBLISHED --reserve--> BOOKED
    PUBLISHED --unpublish--> DRAFT
    BOOKED --cancel--> PUBLISHED
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Set
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slotbook.core.config import settings
from slotbook.core.errors import ConflictError, InvalidInputError, NotFoundError
from slotbook.db.types import utcnow
from slotbook.models.partner import Partner
from slotbook.models.slot import Slot, SlotStatus
from slotbook.services.partners import get_partner
from slotbook.services.slot_store import SlotStore
from slotbook.utils.timeslots import (
    ScheduleTemplate,
    as_local,
    format_hhmm,
    iter_dates,
    local_to_utc,
    parse_hhmm,
    partner_zone,
)

logger = logging.getLogger(__name__)


@dataclass
class SeriesResult:
    created: int = 0
    skipped_duplicates: int = 0


@dataclass
class DeleteResult:
    deleted: List[UUID] = field(default_factory=list)
    rejected: List[UUID] = field(default_factory=list)


class SlotLifecycleService:
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

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def create_series(
        self,
        partner_id: UUID,
        start_date: date,
        end_date: date,
        weekdays: Iterable[int],
        times: Iterable[str],
        publish: bool = False,
    ) -> SeriesResult:
        """
        Create one slot per selected weekday/time in the inclusive date range.

        Weekdays use ISO numbering (1 = Monday .. 7 = Sunday). Existing
        (partner, start_time) pairs are skipped and counted; past dates and,
        for today, times at or before now are not generated at all.
        """
        partner = get_partner(self.db, partner_id)
        weekday_set = set(weekdays)
        time_values = sorted({parse_hhmm(t) for t in times})

        if start_date > end_date:
            raise InvalidInputError("start_date must be on or before end_date")
        if (end_date - start_date).days >= settings.MAX_SERIES_DAYS:
            raise InvalidInputError(f"Date range may span at most {settings.MAX_SERIES_DAYS} days")
        if not weekday_set:
            raise InvalidInputError("Select at least one weekday")
        if any(d < 1 or d > 7 for d in weekday_set):
            raise InvalidInputError("Weekdays must be between 1 (Monday) and 7 (Sunday)")
        if not time_values:
            raise InvalidInputError("Select at least one time")

        template = self.template_for(partner)
        off_grid = [t for t in time_values if not template.contains(t)]
        if off_grid:
            raise InvalidInputError(
                "Times outside the partner schedule: " + ", ".join(format_hhmm(t) for t in off_grid)
            )

        tz = partner_zone(partner)
        now = self.clock()
        today = now.astimezone(tz).date()

        wanted: List[datetime] = []
        for day in iter_dates(max(start_date, today), end_date):
            if day.isoweekday() not in weekday_set:
                continue
            for t in time_values:
                start = local_to_utc(day, t, tz)
                if start <= now:
                    continue
                wanted.append(start)

        result = SeriesResult()
        if not wanted:
            return result

        existing: Set[datetime] = self.store.existing_starts(partner.id, wanted[0], wanted[-1])
        status = SlotStatus.PUBLISHED if publish else SlotStatus.DRAFT

        for start in wanted:
            if start in existing:
                result.skipped_duplicates += 1
                continue
            # Rows inserted by a concurrent request since the pre-load are
            # skipped by the insert itself.
            inserted = self.store.insert_if_absent(
                partner_id=partner.id,
                start_time=start,
                end_time=start + template.duration,
                status=status,
                published_at=now if publish else None,
            )
            if inserted:
                result.created += 1
            else:
                result.skipped_duplicates += 1

        self.db.commit()
        logger.info(
            "Series for partner %s: %d created, %d duplicates skipped.",
            partner.id, result.created, result.skipped_duplicates,
        )
        return result

    # ------------------------------------------------------------------
    # Single-slot transitions
    # ------------------------------------------------------------------

    def publish(self, partner_id: UUID, start_time: datetime) -> Slot:
        """
        DRAFT -> PUBLISHED. A start time on the partner grid without a row is a
        virtual draft and gets materialised here.
        """
        partner = get_partner(self.db, partner_id)
        tz = partner_zone(partner)
        local_start = as_local(start_time, tz)
        start = local_start.astimezone(timezone.utc)
        now = self.clock()

        slot = self.store.get_by_start(partner.id, start)
        if slot is None:
            template = self.template_for(partner)
            if not template.contains(local_start.time()):
                raise NotFoundError("No slot at this time and it is outside the partner schedule")
            slot = Slot(
                partner_id=partner.id,
                start_time=start,
                end_time=start + template.duration,
                status=SlotStatus.PUBLISHED,
                published_at=now,
            )
            try:
                self.store.add(slot)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ConflictError("Slot was created concurrently, retry")
            self.db.refresh(slot)
            logger.info("Materialised and published slot %s for partner %s.", slot.id, partner.id)
            return slot

        current = SlotStatus(slot.status)
        if current == SlotStatus.BOOKED:
            raise ConflictError("Slot is booked")
        if current != SlotStatus.DRAFT:
            raise ConflictError(f"Slot is already {current.value.lower()}")
        if not self.store.transition(slot, SlotStatus.DRAFT, SlotStatus.PUBLISHED, published_at=now):
            self.db.rollback()
            raise ConflictError("Slot changed status concurrently")
        self.db.commit()
        logger.info("Published slot %s for partner %s.", slot.id, partner.id)
        return slot

    def unpublish(self, partner_id: UUID, slot_id: UUID) -> Slot:
        """PUBLISHED -> DRAFT. Booked slots are never touched."""
        get_partner(self.db, partner_id)
        slot = self.store.get(partner_id, slot_id)
        if slot is None:
            raise NotFoundError("Slot not found")
        self._ensure_transition(slot, SlotStatus.DRAFT)
        if not self.store.transition(slot, SlotStatus.PUBLISHED, SlotStatus.DRAFT, published_at=None):
            self.db.rollback()
            raise ConflictError("Slot changed status concurrently")
        self.db.commit()
        logger.info("Unpublished slot %s for partner %s.", slot.id, partner_id)
        return slot

    def delete_many(self, partner_id: UUID, slot_ids: Iterable[UUID]) -> DeleteResult:
        """
        Remove unbooked slots. BOOKED, unknown and foreign ids, and slots that
        still carry booking history, are rejected one by one; the rest of the
        batch still goes through.
        """
        get_partner(self.db, partner_id)
        ids = list(dict.fromkeys(slot_ids))
        try:
            deleted = self.store.delete_unbooked(partner_id, ids)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        result = DeleteResult(
            deleted=[i for i in ids if i in deleted],
            rejected=[i for i in ids if i not in deleted],
        )
        logger.info(
            "Deleted %d slot(s) for partner %s, rejected %d.",
            len(result.deleted), partner_id, len(result.rejected),
        )
        return result

    @staticmethod
    def _ensure_transition(slot: Slot, target: SlotStatus) -> None:
        current = SlotStatus(slot.status)
        if current.can_transition(target):
            return
        if current == SlotStatus.BOOKED:
            raise ConflictError("Slot is booked")
        raise ConflictError(f"Slot is already {current.value.lower()}")
