from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, UUID4
from datetime import datetime


# Booking: Create (POST /bookings)
class BookingCreate(BaseModel):
    listing_id: UUID4


# Booking: Cancel (PATCH /bookings/{id}/cancel and host cancel)
class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# Booking: Full response
class Booking(BaseModel):
    id: UUID4
    listing_id: UUID4
    guest_id: UUID
    status: str
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[UUID] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    no_show_marked_at: Optional[datetime] = None

    class Config:
        from_attributes = True
