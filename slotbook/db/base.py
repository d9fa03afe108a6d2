
from slotbook.db.session import Base
from slotbook.models.partner import Partner
from slotbook.models.customer import Customer
from slotbook.models.slot import Slot
from slotbook.models.discount_code import DiscountCode
from slotbook.models.booking import Booking
