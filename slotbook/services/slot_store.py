"""Persistence access for slots.

All slot reads and writes go through here so the conditional updates that
guard status transitions live in one place.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import delete, exists, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from slotbook.models.booking import Booking
from slotbook.models.slot import Slot, SlotStatus

slots_table = Slot.__table__
bookings_table = Booking.__table__


class SlotStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, partner_id: UUID, slot_id: UUID) -> Optional[Slot]:
        return self.db.scalar(
            select(Slot).where(Slot.id == slot_id, Slot.partner_id == partner_id)
        )

    def get_by_start(self, partner_id: UUID, start_time: datetime) -> Optional[Slot]:
        return self.db.scalar(
            select(Slot).where(Slot.partner_id == partner_id, Slot.start_time == start_time)
        )

    def list_between(
        self,
        partner_id: UUID,
        start: datetime,
        end: datetime,
        status: Optional[SlotStatus] = None,
    ) -> List[Slot]:
        """Slots with start_time in [start, end), ordered by start."""
        query = select(Slot).where(
            Slot.partner_id == partner_id,
            Slot.start_time >= start,
            Slot.start_time < end,
        )
        if status is not None:
            query = query.where(Slot.status == status)
        return list(self.db.scalars(query.order_by(Slot.start_time)))

    def existing_starts(self, partner_id: UUID, start: datetime, end: datetime) -> Set[datetime]:
        """Start times already persisted in [start, end]."""
        rows = self.db.scalars(
            select(Slot.start_time).where(
                Slot.partner_id == partner_id,
                Slot.start_time >= start,
                Slot.start_time <= end,
            )
        )
        return set(rows)

    def add(self, slot: Slot) -> Slot:
        self.db.add(slot)
        self.db.flush()
        return slot

    def insert_if_absent(self, **values) -> bool:
        """
        Insert one slot row unless (partner_id, start_time) already exists.
        Returns True when a row was written.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(slots_table).on_conflict_do_nothing(index_elements=["partner_id", "start_time"])
        elif dialect == "sqlite":
            stmt = sqlite_insert(slots_table).on_conflict_do_nothing(index_elements=["partner_id", "start_time"])
        else:
            stmt = insert(slots_table)
        result = self.db.execute(stmt.values(**values))
        return result.rowcount == 1

    def transition(self, slot: Slot, expected: SlotStatus, target: SlotStatus, **values) -> bool:
        """
        Compare-and-set on status.

        Issued as a plain UPDATE guarded by the expected status so two racing
        requests cannot both move the same row. Returns False when the row
        was no longer in the expected status.
        """
        if not expected.can_transition(target):
            raise ValueError(f"Illegal slot transition {expected.value} -> {target.value}")
        result = self.db.execute(
            update(slots_table)
            .where(slots_table.c.id == slot.id, slots_table.c.status == expected)
            .values(status=target, **values)
        )
        if result.rowcount != 1:
            return False
        self.db.refresh(slot)
        return True

    def delete_unbooked(self, partner_id: UUID, slot_ids: Iterable[UUID]) -> Set[UUID]:
        """
        Delete the given slots unless BOOKED or referenced by any booking row,
        cancelled ones included. Returns the ids actually removed.
        """
        ids = list(slot_ids)
        if not ids:
            return set()
        candidates = set(
            self.db.scalars(
                select(Slot.id).where(
                    Slot.id.in_(ids),
                    Slot.partner_id == partner_id,
                    Slot.status != SlotStatus.BOOKED,
                    ~exists().where(bookings_table.c.slot_id == Slot.id),
                )
            )
        )
        if not candidates:
            return set()
        # Re-checked in the DELETE so a slot booked in between survives.
        self.db.execute(
            delete(slots_table).where(
                slots_table.c.id.in_(candidates),
                slots_table.c.status != SlotStatus.BOOKED,
                ~exists().where(bookings_table.c.slot_id == slots_table.c.id),
            )
        )
        survivors = set(self.db.scalars(select(Slot.id).where(Slot.id.in_(candidates))))
        for slot_id in candidates - survivors:
            stale = self.db.identity_map.get(self.db.identity_key(Slot, slot_id))
            if stale is not None:
                self.db.expunge(stale)
        return candidates - survivors
