import uuid
import enum
from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from slotbook.db.session import Base
from slotbook.db.types import UTCDateTime, utcnow


class SlotStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    BOOKED = "BOOKED"

    def can_transition(self, target: "SlotStatus") -> bool:
        return target in SLOT_TRANSITIONS[self]


# Every status has an entry; there is no terminal state.
SLOT_TRANSITIONS = {
    SlotStatus.DRAFT: frozenset({SlotStatus.PUBLISHED}),
    SlotStatus.PUBLISHED: frozenset({SlotStatus.DRAFT, SlotStatus.BOOKED}),
    SlotStatus.BOOKED: frozenset({SlotStatus.PUBLISHED}),
}


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (
        UniqueConstraint("partner_id", "start_time", name="uq_slot_partner_start"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id = Column(Uuid(as_uuid=True), ForeignKey("partners.id"), nullable=False, index=True)
    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(SAEnum(SlotStatus, native_enum=False, length=16), nullable=False, default=SlotStatus.DRAFT, index=True)
    published_at = Column(UTCDateTime, nullable=True)
    booked_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    partner = relationship("Partner", back_populates="slots")
    bookings = relationship("Booking", back_populates="slot")
