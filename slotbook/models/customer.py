import uuid
from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship
from slotbook.db.session import Base
from slotbook.db.types import UTCDateTime, utcnow

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)  # stored lower-cased
    phone = Column(String(32), nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)

    bookings = relationship("Booking", back_populates="customer")
