from slotbook.schemas.common import ErrorResponse
from slotbook.schemas.slot import (
    SeriesCreate, SeriesResult, SlotPublish, Slot, SlotsDelete, DeleteResult,
    DayCounts, MonthAvailability, DaySlot, DayDetail,
)
from slotbook.schemas.booking import (
    QuoteRequest, Quote, BookingCreate, BookingSlotSummary, Booking,
    DiscountApply, BookingCancelResponse, ReleaseUnpaid, ReleaseUnpaidResult,
)
