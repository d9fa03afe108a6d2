"""Cent-exact pricing.

All amounts are integer cents. Rounding to whole cents is round-half-up;
the remainder (rest) is always derived, never rounded on its own, so
``deposit + rest == total`` holds by construction.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy.orm import Session

from slotbook.services.partners import get_partner


@dataclass(frozen=True)
class PriceQuote:
    total_cents: int
    deposit_cents: int
    rest_cents: int


def percent_of(amount_cents: int, percent) -> int:
    """round_half_up(amount * percent / 100) in whole cents."""
    value = Decimal(amount_cents) * Decimal(percent) / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_base_total(price_1pax_cents: int, price_2plus_cents: int, participant_count: int) -> int:
    """One participant pays the single price; two or more pay per person."""
    if participant_count == 1:
        return price_1pax_cents
    return price_2plus_cents * participant_count


def split_deposit(total_cents: int, fee_percent) -> PriceQuote:
    deposit = percent_of(total_cents, fee_percent)
    return PriceQuote(total_cents=total_cents, deposit_cents=deposit, rest_cents=total_cents - deposit)


class PricingService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def quote(self, partner_id: UUID, participant_count: int, slot_start_time: datetime) -> PriceQuote:
        """
        Price a reservation. The start time does not influence the price yet;
        it is part of the contract so time-based tiers can be added without
        changing callers. The participant bound is validated by the caller.
        """
        partner = get_partner(self.db, partner_id)
        total = compute_base_total(partner.price_1pax_cents, partner.price_2plus_cents, participant_count)
        return split_deposit(total, partner.fee_percent)
