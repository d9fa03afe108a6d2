from uuid import UUID

from sqlalchemy.orm import Session

from slotbook.core.errors import NotFoundError
from slotbook.models.partner import Partner


def get_partner(db: Session, partner_id: UUID) -> Partner:
    """Partner lookup used by every core operation; inactive partners count as absent."""
    partner = db.get(Partner, partner_id)
    if not partner or partner.is_active is False:
        raise NotFoundError("Partner not found")
    return partner
