import uuid
import enum
from sqlalchemy import Column, Integer, ForeignKey, Index, Uuid, Enum as SAEnum, text
from sqlalchemy.orm import relationship
from slotbook.db.session import Base
from slotbook.db.types import UTCDateTime, utcnow


# Group size accepted per booking.
MAX_PARTICIPANTS = 3


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    def can_transition(self, target: "BookingStatus") -> bool:
        return target in BOOKING_TRANSITIONS[self]


BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # One live booking per slot; cancelled rows stay for history.
        Index(
            "uq_booking_active_slot",
            "slot_id",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slot_id = Column(Uuid(as_uuid=True), ForeignKey("slots.id"), nullable=False, index=True)
    partner_id = Column(Uuid(as_uuid=True), ForeignKey("partners.id"), nullable=False, index=True)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    participant_count = Column(Integer, nullable=False, default=1)
    status = Column(SAEnum(BookingStatus, native_enum=False, length=16), nullable=False, default=BookingStatus.PENDING, index=True)
    total_amount_cents = Column(Integer, nullable=False)
    deposit_amount_cents = Column(Integer, nullable=False)
    rest_amount_cents = Column(Integer, nullable=False)
    discount_amount_cents = Column(Integer, nullable=False, default=0)
    discount_code_id = Column(Uuid(as_uuid=True), ForeignKey("discount_codes.id"), nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)
    confirmed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    # Relationships
    slot = relationship("Slot", back_populates="bookings")
    partner = relationship("Partner", back_populates="bookings")
    customer = relationship("Customer", back_populates="bookings")
    discount_code = relationship("DiscountCode")
