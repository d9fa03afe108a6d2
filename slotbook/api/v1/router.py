from fastapi import APIRouter

# Public
from slotbook.api.v1.public.slots import router as public_slots_router
from slotbook.api.v1.public.bookings import router as bookings_router

# Admin
from slotbook.api.v1.admin.slots import router as admin_slots_router
from slotbook.api.v1.admin.bookings import router as admin_bookings_router

api_router = APIRouter()

# --- Public: slot picker ---
api_router.include_router(public_slots_router)

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Admin ---
api_router.include_router(admin_slots_router)
api_router.include_router(admin_bookings_router)
