"""Discount code application on a pending booking.

Pricing is always re-derived from the undiscounted base
(current total + current discount), so applying the same code twice, or
applying one code after another, never compounds.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from slotbook.core.errors import (
    ConflictError,
    InvalidCodeError,
    InvalidCodeReason,
    NotFoundError,
)
from slotbook.db.types import utcnow
from slotbook.models.booking import Booking, BookingStatus
from slotbook.models.discount_code import DiscountCode, DiscountType
from slotbook.services.partners import get_partner
from slotbook.services.pricing import percent_of, split_deposit

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def check_code_validity(dc: DiscountCode, now: datetime) -> None:
    """Validity checks in fixed order; the first failing one is reported."""
    if not dc.active:
        raise InvalidCodeError(InvalidCodeReason.INACTIVE)
    if dc.valid_from is not None and now < dc.valid_from:
        raise InvalidCodeError(InvalidCodeReason.NOT_YET_VALID)
    if dc.valid_until is not None and now > dc.valid_until:
        raise InvalidCodeError(InvalidCodeReason.EXPIRED)
    if dc.max_redemptions is not None and dc.redeemed_count >= dc.max_redemptions:
        raise InvalidCodeError(InvalidCodeReason.EXHAUSTED)


def discount_amount(dc: DiscountCode, base_total_cents: int) -> int:
    """PERCENT rounds half-up; FIXED never exceeds the base total."""
    if DiscountType(dc.type) == DiscountType.PERCENT:
        return min(percent_of(base_total_cents, dc.percent or 0), base_total_cents)
    return max(0, min(dc.amount_cents or 0, base_total_cents))


class DiscountService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def find_code(self, partner_id: UUID, code: str) -> DiscountCode:
        """
        Case-insensitive lookup among the partner's own codes and global ones.
        A partner-specific code shadows a global code with the same text.
        """
        wanted = normalize_code(code)
        candidates = list(
            self.db.scalars(
                select(DiscountCode).where(
                    func.upper(DiscountCode.code) == wanted,
                    or_(DiscountCode.partner_id == partner_id, DiscountCode.partner_id.is_(None)),
                )
            )
        )
        if candidates:
            candidates.sort(key=lambda dc: dc.partner_id is None)
            return candidates[0]

        elsewhere = self.db.scalar(
            select(DiscountCode.id).where(func.upper(DiscountCode.code) == wanted).limit(1)
        )
        if elsewhere is not None:
            raise InvalidCodeError(InvalidCodeReason.WRONG_PARTNER)
        raise InvalidCodeError(InvalidCodeReason.NOT_FOUND)

    def apply(self, booking_id: UUID, code: Optional[str]) -> Booking:
        """
        Apply ``code`` to a booking, or clear the discount when ``code`` is
        None/blank. Redemption counts are left alone; they move at payment.
        """
        try:
            booking = self.db.scalar(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
            if booking is None:
                raise NotFoundError("Booking not found")
            if BookingStatus(booking.status) == BookingStatus.CANCELLED:
                raise ConflictError("Booking is cancelled")

            partner = get_partner(self.db, booking.partner_id)
            base_total = booking.total_amount_cents + (booking.discount_amount_cents or 0)

            dc: Optional[DiscountCode] = None
            discount = 0
            if code is not None and code.strip():
                dc = self.find_code(booking.partner_id, code)
                check_code_validity(dc, self.clock())
                discount = discount_amount(dc, base_total)

            quote = split_deposit(base_total - discount, partner.fee_percent)
            booking.total_amount_cents = quote.total_cents
            booking.deposit_amount_cents = quote.deposit_cents
            booking.rest_amount_cents = quote.rest_cents
            booking.discount_amount_cents = discount
            booking.discount_code_id = dc.id if dc else None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        if dc is None:
            logger.info("Cleared discount on booking %s.", booking.id)
        else:
            logger.info("Applied code %s to booking %s: -%d cents.", dc.code, booking.id, discount)
        return booking
