import uuid
from sqlalchemy import Column, String, Boolean, Integer, JSON, Uuid
from sqlalchemy.orm import relationship
from slotbook.core.config import settings
from slotbook.db.session import Base
from slotbook.db.types import UTCDateTime, utcnow

class Partner(Base):
    __tablename__ = "partners"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    price_1pax_cents = Column(Integer, nullable=False)     # price for exactly one participant
    price_2plus_cents = Column(Integer, nullable=False)    # price per participant from two up
    fee_percent = Column(Integer, nullable=False, default=0)  # deposit share, 0..100
    daily_capacity = Column(Integer, nullable=False, default=settings.DEFAULT_DAILY_CAPACITY)
    timezone = Column(String(64), nullable=False, default=settings.DEFAULT_TIMEZONE)
    schedule_times = Column(JSON, nullable=True)  # ["09:00", "10:30", ...]; NULL = default grid
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    slots = relationship("Slot", back_populates="partner")
    bookings = relationship("Booking", back_populates="partner")
    discount_codes = relationship("DiscountCode", back_populates="partner")
