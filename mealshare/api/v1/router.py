from fastapi import APIRouter

# Public: listings feed, publication and exact-address reads
from mealshare.api.v1.public.listings import router as listings_router

# Public: bookings (guest and host actions)
from mealshare.api.v1.public.bookings import router as bookings_router

# Admin
from mealshare.api.v1.admin.bookings import router as admin_bookings_router
from mealshare.api.v1.admin.moderation import router as moderation_router

api_router = APIRouter()

# --- Public ---
api_router.include_router(listings_router)
api_router.include_router(bookings_router)

# --- Admin ---
api_router.include_router(admin_bookings_router)
api_router.include_router(moderation_router)
