from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from slotbook.core.security import ROLE_ADMIN, ROLE_PARTNER, decode_token
from slotbook.db.session import get_db
from slotbook.db.types import utcnow
from slotbook.services.availability import AvailabilityService
from slotbook.services.cancellation import CancellationService
from slotbook.services.discounts import DiscountService
from slotbook.services.lifecycle import SlotLifecycleService
from slotbook.services.pricing import PricingService
from slotbook.services.reservations import ReservationService

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    subject: str
    role: str
    partner_id: Optional[UUID] = None


def get_clock() -> Callable[[], datetime]:
    """Overridden in tests to pin "now"."""
    return utcnow


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized
    payload = decode_token(credentials.credentials)
    if payload is None:
        raise unauthorized

    partner_id = None
    if payload.get("partner_id"):
        try:
            partner_id = UUID(str(payload["partner_id"]))
        except ValueError:
            raise unauthorized
    return Principal(subject=payload["sub"], role=payload.get("role", ""), partner_id=partner_id)


def get_current_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal


def require_partner_access(
    partner_id: UUID,
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Admins manage every partner; partner users only their own calendar."""
    if principal.role == ROLE_ADMIN:
        return principal
    if principal.role == ROLE_PARTNER and principal.partner_id == partner_id:
        return principal
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this partner")


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_lifecycle_service(
    db: Session = Depends(get_db), clock: Callable[[], datetime] = Depends(get_clock)
) -> SlotLifecycleService:
    return SlotLifecycleService(db, clock=clock)


def get_availability_service(
    db: Session = Depends(get_db), clock: Callable[[], datetime] = Depends(get_clock)
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_discount_service(
    db: Session = Depends(get_db), clock: Callable[[], datetime] = Depends(get_clock)
) -> DiscountService:
    return DiscountService(db, clock=clock)


def get_cancellation_service(
    db: Session = Depends(get_db), clock: Callable[[], datetime] = Depends(get_clock)
) -> CancellationService:
    return CancellationService(db, clock=clock)


def get_reservation_service(
    db: Session = Depends(get_db), clock: Callable[[], datetime] = Depends(get_clock)
) -> ReservationService:
    return ReservationService(db, clock=clock)
