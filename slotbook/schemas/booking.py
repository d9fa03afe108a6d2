from typing import Optional
from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator
from datetime import datetime

from slotbook.models.booking import BookingStatus, MAX_PARTICIPANTS


# Quote (POST /bookings/quote)
class QuoteRequest(BaseModel):
    partner_id: UUID4
    start_time: datetime
    participant_count: int = Field(1, ge=1, le=MAX_PARTICIPANTS)


class Quote(BaseModel):
    total_cents: int
    deposit_cents: int
    rest_cents: int

    class Config:
        from_attributes = True


# Booking - Create (POST /bookings)
class BookingCreate(QuoteRequest):
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    customer_phone: Optional[str] = None

    @field_validator("customer_phone", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


# Compact slot for booking responses
class BookingSlotSummary(BaseModel):
    start_time: datetime
    end_time: datetime

    class Config:
        from_attributes = True


# Booking - Full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: UUID4
    partner_id: UUID4
    slot_id: UUID4
    customer_id: UUID4
    participant_count: int
    status: BookingStatus
    total_amount_cents: int
    deposit_amount_cents: int
    rest_amount_cents: int
    discount_amount_cents: int = 0
    discount_code_id: Optional[UUID4] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    slot: Optional[BookingSlotSummary] = None

    class Config:
        from_attributes = True


# Discount (POST /bookings/{id}/discount); null or blank clears
class DiscountApply(BaseModel):
    code: Optional[str] = Field(None, max_length=64)


# Booking - Cancel response (POST /bookings/{id}/cancel)
class BookingCancelResponse(BaseModel):
    booking_id: UUID4
    status: BookingStatus
    refund_eligible: bool
    slot_freed: bool
    deposit_cents: int

    class Config:
        from_attributes = True


# Maintenance (POST /admin/maintenance/release-unpaid)
class ReleaseUnpaid(BaseModel):
    older_than_minutes: Optional[int] = Field(None, ge=0)


class ReleaseUnpaidResult(BaseModel):
    released: int
