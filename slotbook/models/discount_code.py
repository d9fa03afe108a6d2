import uuid
import enum
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Index, Uuid, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from slotbook.db.session import Base
from slotbook.db.types import UTCDateTime, utcnow


class DiscountType(str, enum.Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    partner_id = Column(Uuid(as_uuid=True), ForeignKey("partners.id"), nullable=True, index=True)  # NULL = global
    code = Column(String(64), nullable=False, index=True)  # matched case-insensitively
    type = Column(SAEnum(DiscountType, native_enum=False, length=16), nullable=False)
    percent = Column(Integer, nullable=True)        # 1..100, PERCENT only
    amount_cents = Column(Integer, nullable=True)   # FIXED only
    valid_from = Column(UTCDateTime, nullable=True)
    valid_until = Column(UTCDateTime, nullable=True)
    max_redemptions = Column(Integer, nullable=True)
    redeemed_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    partner = relationship("Partner", back_populates="discount_codes")


# Codes are unique case-insensitively, per partner and among global codes.
Index(
    "uq_discount_partner_code",
    DiscountCode.partner_id,
    func.upper(DiscountCode.code),
    unique=True,
    postgresql_where=DiscountCode.partner_id.isnot(None),
    sqlite_where=DiscountCode.partner_id.isnot(None),
)
Index(
    "uq_discount_global_code",
    func.upper(DiscountCode.code),
    unique=True,
    postgresql_where=DiscountCode.partner_id.is_(None),
    sqlite_where=DiscountCode.partner_id.is_(None),
)
