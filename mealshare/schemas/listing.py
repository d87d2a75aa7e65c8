from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, UUID4, field_validator, model_validator
from datetime import datetime, timezone


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# Address as submitted by the host; never echoed on public read paths
class AddressIn(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field("", max_length=20)


# Listing: Create (POST /listings)
class ListingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    neighborhood: Optional[str] = Field(None, max_length=120)
    address: AddressIn
    capacity_total: int = Field(..., ge=1)
    scheduled_at: datetime
    pickup_window_start: datetime
    pickup_window_end: datetime

    @field_validator("scheduled_at", "pickup_window_start", "pickup_window_end")
    @classmethod
    def normalize_tz(cls, v):
        return _as_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.pickup_window_end <= self.pickup_window_start:
            raise ValueError("pickup_window_end must be after pickup_window_start")
        return self


# Listing: Update (PATCH /listings/{id}); capacity is not editable
class ListingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    neighborhood: Optional[str] = Field(None, max_length=120)
    address: Optional[AddressIn] = None
    scheduled_at: Optional[datetime] = None
    pickup_window_start: Optional[datetime] = None
    pickup_window_end: Optional[datetime] = None

    @field_validator("scheduled_at", "pickup_window_start", "pickup_window_end")
    @classmethod
    def normalize_tz(cls, v):
        return _as_utc(v) if v is not None else v


class ExactAddressOut(BaseModel):
    street: str
    city: str
    postal_code: str
    lat: float
    lon: float


# Listing: public view (feed and detail)
class ListingPublic(BaseModel):
    id: UUID4
    host_id: UUID
    title: str
    description: Optional[str] = None
    neighborhood: Optional[str] = None
    public_lat: float
    public_lon: float
    capacity_total: int
    capacity_reserved: int
    capacity_available: int
    scheduled_at: datetime
    pickup_window_start: datetime
    pickup_window_end: datetime
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


# Listing: detail; exact_address only present when disclosure is allowed
class ListingDetail(ListingPublic):
    exact_address: Optional[ExactAddressOut] = None


# Admin: listings sharing one physical address across different hosts
class DuplicateAddressGroup(BaseModel):
    address_identity: str
    host_ids: list[UUID]
    listing_ids: list[UUID4]
