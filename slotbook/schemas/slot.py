from typing import Optional, List
from pydantic import BaseModel, Field, UUID4
from datetime import date, datetime
from uuid import UUID

from slotbook.models.slot import SlotStatus
from slotbook.services.availability import BaselineMode


# Series - Create (POST /admin/partners/{id}/slots/series)
class SeriesCreate(BaseModel):
    start_date: date
    end_date: date
    weekdays: List[int] = Field(..., description="ISO weekdays, 1 = Monday .. 7 = Sunday")
    times: List[str] = Field(..., description='Local start times, e.g. ["09:00", "14:00"]')
    publish: bool = False


class SeriesResult(BaseModel):
    created: int
    skipped_duplicates: int

    class Config:
        from_attributes = True


# Publish a persisted or virtual draft by its start time
class SlotPublish(BaseModel):
    start_time: datetime


# Slot - DB response
class Slot(BaseModel):
    id: UUID4
    partner_id: UUID4
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    published_at: Optional[datetime] = None
    booked_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SlotsDelete(BaseModel):
    slot_ids: List[UUID]


class DeleteResult(BaseModel):
    deleted: List[UUID] = []
    rejected: List[UUID] = []

    class Config:
        from_attributes = True


# Month calendar (GET /admin/partners/{id}/availability/month)
class DayCounts(BaseModel):
    date: date
    draft: int
    published: int
    booked: int
    materialized_draft: int
    capacity: int
    remaining: int
    has_draft: bool
    has_published: bool
    has_booked: bool

    class Config:
        from_attributes = True


class MonthAvailability(BaseModel):
    month: str
    timezone: str
    capacity_per_day: int
    baseline_mode: BaselineMode
    schedule_size: int
    days: List[DayCounts]

    class Config:
        from_attributes = True


# Day detail - virtual drafts merged with persisted rows
class DaySlot(BaseModel):
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    slot_id: Optional[UUID4] = None
    virtual: bool = True

    class Config:
        from_attributes = True


class DayDetail(BaseModel):
    partner_id: UUID4
    date: date
    timezone: str
    slots: List[DaySlot]
