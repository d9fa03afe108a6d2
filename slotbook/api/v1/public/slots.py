from uuid import UUID
from typing import List
from datetime import date

from fastapi import APIRouter, Depends, Query

from slotbook.api.deps import get_availability_service
from slotbook.services.availability import AvailabilityService
from slotbook.schemas.slot import DaySlot

router = APIRouter(prefix="/partners", tags=["Slots"])


@router.get("/{partner_id}/slots", response_model=List[DaySlot])
def list_published_slots(
    partner_id: UUID,
    date: date = Query(..., description="Partner-local date"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Bookable slots of a day that have not started yet."""
    return service.published_slots(partner_id, date)
