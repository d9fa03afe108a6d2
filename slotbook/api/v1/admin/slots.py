from uuid import UUID
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from slotbook.db.session import get_db
from slotbook.api.deps import (
    Principal,
    get_availability_service,
    get_lifecycle_service,
    require_partner_access,
)
from slotbook.services.availability import AvailabilityService
from slotbook.services.lifecycle import SlotLifecycleService
from slotbook.services.partners import get_partner
from slotbook.utils.timeslots import partner_zone
from slotbook.schemas.slot import (
    SeriesCreate,
    SeriesResult,
    SlotPublish,
    Slot as SlotSchema,
    SlotsDelete,
    DeleteResult,
    MonthAvailability,
    DayDetail,
    DaySlot,
)

router = APIRouter(prefix="/admin/partners", tags=["Admin - Slots"])


# ---------------------------------------------------------------------------
# Slot lifecycle
# ---------------------------------------------------------------------------


@router.post("/{partner_id}/slots/series", response_model=SeriesResult, status_code=status.HTTP_201_CREATED)
def create_series(
    partner_id: UUID,
    payload: SeriesCreate,
    service: SlotLifecycleService = Depends(get_lifecycle_service),
    principal: Principal = Depends(require_partner_access),
):
    """
    Generate slots for every selected weekday and time in a date range.
    Slots that already exist are skipped and counted, never duplicated.
    """
    return service.create_series(
        partner_id,
        payload.start_date,
        payload.end_date,
        payload.weekdays,
        payload.times,
        publish=payload.publish,
    )


@router.post("/{partner_id}/slots/publish", response_model=SlotSchema)
def publish_slot(
    partner_id: UUID,
    payload: SlotPublish,
    service: SlotLifecycleService = Depends(get_lifecycle_service),
    principal: Principal = Depends(require_partner_access),
):
    """Publish a draft by start time; a virtual draft is materialised on the fly."""
    return service.publish(partner_id, payload.start_time)


@router.post("/{partner_id}/slots/{slot_id}/unpublish", response_model=SlotSchema)
def unpublish_slot(
    partner_id: UUID,
    slot_id: UUID,
    service: SlotLifecycleService = Depends(get_lifecycle_service),
    principal: Principal = Depends(require_partner_access),
):
    return service.unpublish(partner_id, slot_id)


@router.post("/{partner_id}/slots/delete", response_model=DeleteResult)
def delete_slots(
    partner_id: UUID,
    payload: SlotsDelete,
    service: SlotLifecycleService = Depends(get_lifecycle_service),
    principal: Principal = Depends(require_partner_access),
):
    """Booked, unknown and foreign ids come back in `rejected`."""
    return service.delete_many(partner_id, payload.slot_ids)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


@router.get("/{partner_id}/availability/month", response_model=MonthAvailability)
def month_availability(
    partner_id: UUID,
    month: str = Query(..., description="Calendar month as YYYY-MM"),
    capacity_per_day: Optional[int] = Query(None, ge=0),
    baseline_mode: Optional[str] = Query(None, description='"all" | "future" | "none"'),
    service: AvailabilityService = Depends(get_availability_service),
    principal: Principal = Depends(require_partner_access),
):
    return service.month_counts(
        partner_id, month, capacity_per_day=capacity_per_day, baseline_mode=baseline_mode
    )


@router.get("/{partner_id}/availability/day", response_model=DayDetail)
def day_availability(
    partner_id: UUID,
    date: date = Query(..., description="Partner-local date"),
    db: Session = Depends(get_db),
    service: AvailabilityService = Depends(get_availability_service),
    principal: Principal = Depends(require_partner_access),
):
    """Full schedule of one day: virtual drafts merged with stored slots."""
    slots = service.day_detail(partner_id, date)
    partner = get_partner(db, partner_id)
    return DayDetail(
        partner_id=partner.id,
        date=date,
        timezone=partner_zone(partner).key,
        slots=[DaySlot.model_validate(s) for s in slots],
    )
