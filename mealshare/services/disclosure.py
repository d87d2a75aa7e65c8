"""
Disclosure gate for a listing's exact pickup address.

The exact address is returned to the host, and to a guest only while that
guest holds a CONFIRMED booking for the listing. The check reads booking
state on every call so a cancellation revokes access immediately.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from mealshare.core.errors import NotFound, Unauthorized
from mealshare.domain.booking_state import BookingStatus
from mealshare.models.booking import Booking
from mealshare.models.listing import Listing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExactAddress:
    street: str
    city: str
    postal_code: str
    lat: float
    lon: float


def _get_listing(db: Session, listing_id: UUID) -> Listing:
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise NotFound("Listing not found")
    return listing


def _is_entitled(db: Session, listing: Listing, requester_id: Optional[UUID]) -> bool:
    if requester_id is None:
        return False
    if listing.host_id == requester_id:
        return True
    confirmed = db.query(Booking.id).filter(
        Booking.listing_id == listing.id,
        Booking.guest_id == requester_id,
        Booking.status == BookingStatus.CONFIRMED.value,
    ).first()
    return confirmed is not None


def can_reveal_exact_address(db: Session, listing_id: UUID, requester_id: Optional[UUID]) -> bool:
    listing = _get_listing(db, listing_id)
    return _is_entitled(db, listing, requester_id)


def get_exact_address(db: Session, listing_id: UUID, requester_id: Optional[UUID]) -> ExactAddress:
    """Return the exact address or raise Unauthorized."""
    listing = _get_listing(db, listing_id)
    if not _is_entitled(db, listing, requester_id):
        logger.info("Exact address of listing %s withheld from %s.", listing_id, requester_id)
        raise Unauthorized("Exact address is shared once your booking is confirmed")
    return ExactAddress(
        street=listing.street,
        city=listing.city,
        postal_code=listing.postal_code,
        lat=listing.real_lat,
        lon=listing.real_lon,
    )
