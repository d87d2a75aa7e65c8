"""
Listing publication: address identity, geocoding and fuzzing at create/edit
time, plus the host's soft-close (withdraw) and admin duplicate detection.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from mealshare.core.errors import (
    EditWindowClosed,
    InvalidSchedule,
    ListingClosed,
    NotFound,
    Unauthorized,
)
from mealshare.db.transaction import atomic
from mealshare.domain.address_identity import format_identity, identify
from mealshare.domain.booking_state import ACTIVE_STATUSES
from mealshare.domain.edit_window import can_edit
from mealshare.domain.location_fuzzer import fuzz
from mealshare.models.booking import Booking
from mealshare.models.listing import Listing
from mealshare.schemas.listing import DuplicateAddressGroup, ListingCreate, ListingUpdate
from mealshare.services import audit_trail, reservations
from mealshare.services.geocoder import Geocoder
from mealshare.utils.clock import ensure_utc, utcnow

logger = logging.getLogger(__name__)

WITHDRAWN_REASON = "Meal withdrawn by host"
NULLABLE_FIELDS = ("description", "neighborhood")


def _locate(street: str, city: str, postal_code: str, geocoder: Geocoder) -> dict:
    """Identity hash, real coordinate and fuzzed public coordinate for an address."""
    identity = identify(street, city, postal_code)
    point = geocoder.geocode(street, city, postal_code)
    public_lat, public_lon = fuzz(point.lat, point.lon, identity)
    return {
        "street": street.strip(),
        "city": city.strip(),
        "postal_code": postal_code.strip(),
        "address_identity_hash": identity,
        "real_lat": point.lat,
        "real_lon": point.lon,
        "public_lat": public_lat,
        "public_lon": public_lon,
    }


def _get_owned_listing(db: Session, listing_id: UUID, host_id: UUID) -> Listing:
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise NotFound("Listing not found")
    if listing.host_id != host_id:
        raise Unauthorized("Only the host can change this listing")
    return listing


def publish_listing(
    db: Session,
    host_id: UUID,
    data: ListingCreate,
    geocoder: Geocoder,
    now: Optional[datetime] = None,
) -> Listing:
    now = ensure_utc(now) or utcnow()
    # Geocode outside the transaction: it is a network call
    location = _locate(data.address.street, data.address.city, data.address.postal_code, geocoder)

    listing = Listing(
        host_id=host_id,
        title=data.title,
        description=data.description,
        neighborhood=data.neighborhood,
        capacity_total=data.capacity_total,
        capacity_reserved=0,
        scheduled_at=data.scheduled_at,
        pickup_window_start=data.pickup_window_start,
        pickup_window_end=data.pickup_window_end,
        status="active",
        created_at=now,
        **location,
    )
    with atomic(db):
        db.add(listing)
        db.flush()
        audit_trail.record(
            db, host_id, audit_trail.LISTING_PUBLISHED, listing.id,
            {"capacity_total": data.capacity_total},
            now=now,
        )

    db.refresh(listing)
    logger.info("Listing %s published by host %s.", listing.id, host_id)
    return listing


def update_listing(
    db: Session,
    listing_id: UUID,
    host_id: UUID,
    data: ListingUpdate,
    geocoder: Geocoder,
    now: Optional[datetime] = None,
) -> Listing:
    """
    Apply a host edit inside the edit window.

    The public pin is recomputed only when the address itself changed; an
    unchanged address keeps the same identity and therefore the same offset.
    """
    now = ensure_utc(now) or utcnow()
    listing = _get_owned_listing(db, listing_id, host_id)
    if listing.status != "active":
        raise ListingClosed()
    if not can_edit(listing, now):
        raise EditWindowClosed()

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True, exclude={"address"}).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    if data.address is not None:
        new_identity = identify(data.address.street, data.address.city, data.address.postal_code)
        if new_identity != listing.address_identity_hash:
            changes.update(_locate(data.address.street, data.address.city, data.address.postal_code, geocoder))

    start = changes.get("pickup_window_start", listing.pickup_window_start)
    end = changes.get("pickup_window_end", listing.pickup_window_end)
    if ensure_utc(end) <= ensure_utc(start):
        raise InvalidSchedule()

    with atomic(db):
        for field, value in changes.items():
            setattr(listing, field, value)
        listing.updated_at = now
        audit_trail.record(
            db, host_id, audit_trail.LISTING_UPDATED, listing.id,
            # Field names only: address values stay out of the audit log
            {"fields": sorted(changes)},
            now=now,
        )

    db.refresh(listing)
    logger.info("Listing %s updated (%d field(s)).", listing_id, len(changes))
    return listing


def withdraw_listing(
    db: Session,
    listing_id: UUID,
    host_id: UUID,
    now: Optional[datetime] = None,
) -> Listing:
    """Soft-close a listing and cancel its open bookings, returning their portions."""
    now = ensure_utc(now) or utcnow()
    listing = _get_owned_listing(db, listing_id, host_id)
    if listing.status == "withdrawn":
        return listing

    with atomic(db):
        db.query(Listing).filter(Listing.id == listing_id).update(
            {Listing.status: "withdrawn", Listing.updated_at: now},
            synchronize_session=False,
        )
        audit_trail.record(db, host_id, audit_trail.LISTING_WITHDRAWN, listing_id, now=now)

        open_bookings = db.query(Booking).filter(
            Booking.listing_id == listing_id,
            Booking.status.in_([s.value for s in ACTIVE_STATUSES]),
        ).all()
        released = 0
        for booking in open_bookings:
            if reservations.release_portion(
                db, booking, host_id, audit_trail.BOOKING_HOST_CANCELLED, WITHDRAWN_REASON, now
            ):
                released += 1

    db.refresh(listing)
    logger.info("Listing %s withdrawn; %d open booking(s) cancelled.", listing_id, released)
    return listing


def find_duplicate_addresses(db: Session) -> List[DuplicateAddressGroup]:
    """Address identities used by more than one host (possible duplicate accounts)."""
    shared = (
        db.query(Listing.address_identity_hash)
        .group_by(Listing.address_identity_hash)
        .having(func.count(func.distinct(Listing.host_id)) > 1)
        .subquery()
    )
    rows = (
        db.query(Listing.address_identity_hash, Listing.host_id, Listing.id)
        .filter(Listing.address_identity_hash.in_(shared.select()))
        .order_by(Listing.address_identity_hash, Listing.created_at)
        .all()
    )

    hosts = defaultdict(list)
    listings = defaultdict(list)
    for identity, host_id, listing_id in rows:
        if host_id not in hosts[identity]:
            hosts[identity].append(host_id)
        listings[identity].append(listing_id)

    return [
        DuplicateAddressGroup(
            address_identity=format_identity(identity),
            host_ids=hosts[identity],
            listing_ids=listings[identity],
        )
        for identity in hosts
    ]
