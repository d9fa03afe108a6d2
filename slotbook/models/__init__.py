from slotbook.models.partner import Partner
from slotbook.models.customer import Customer
from slotbook.models.slot import Slot, SlotStatus
from slotbook.models.discount_code import DiscountCode, DiscountType
from slotbook.models.booking import Booking, BookingStatus
