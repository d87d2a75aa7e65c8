"""
Reservation engine: capacity accounting and the booking lifecycle.

Capacity changes are conditional UPDATEs against the listing row
(``capacity_reserved < capacity_total`` on reserve, a status guard on
release), so the database serializes them per listing and two requests can
never both take the last portion. Each operation is a single transaction:
the capacity change, the booking row and the audit entry commit together or
not at all.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealshare.core.config import settings
from mealshare.core.errors import (
    DuplicateReservation,
    GraceExpired,
    InvalidTransition,
    ListingClosed,
    ListingExpired,
    NotFound,
    SoldOut,
    Unauthorized,
)
from mealshare.db.transaction import atomic
from mealshare.domain.booking_state import (
    ACTIVE_STATUSES,
    BookingEvent,
    BookingStatus,
    transition,
)
from mealshare.models.booking import Booking
from mealshare.models.listing import Listing
from mealshare.services import audit_trail
from mealshare.utils.clock import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_listing(db: Session, listing_id: UUID) -> Listing:
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise NotFound("Listing not found")
    return listing


def _get_booking(db: Session, booking_id: UUID) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _require_host_or_moderator(listing: Listing, actor_id: Optional[UUID], as_moderator: bool) -> None:
    if as_moderator:
        return
    if actor_id is None or listing.host_id != actor_id:
        raise Unauthorized("Only the host can manage bookings for this meal")


def within_grace(booking: Booking, now: datetime, grace_seconds: int = None) -> bool:
    """True while the booking is no older than the guest cancellation grace period."""
    if grace_seconds is None:
        grace_seconds = settings.CANCEL_GRACE_SECONDS
    elapsed = ensure_utc(now) - ensure_utc(booking.created_at)
    return elapsed <= timedelta(seconds=grace_seconds)


def release_portion(
    db: Session,
    booking: Booking,
    actor_id: Optional[UUID],
    action: str,
    reason: Optional[str],
    now: datetime,
) -> bool:
    """
    Flip an active booking to cancelled and hand its portion back.

    The status guard makes this safe under concurrent or repeated calls:
    only the caller whose UPDATE actually flips the row releases capacity.
    """
    flipped = (
        db.query(Booking)
        .filter(Booking.id == booking.id, Booking.status.in_(_ACTIVE_VALUES))
        .update(
            {
                Booking.status: BookingStatus.CANCELLED.value,
                Booking.cancelled_at: now,
                Booking.cancelled_by: actor_id,
                Booking.cancellation_reason: reason,
            },
            synchronize_session=False,
        )
    )
    if not flipped:
        return False

    returned = db.query(Listing).filter(
        Listing.id == booking.listing_id,
        Listing.capacity_reserved > 0,
    ).update(
        {Listing.capacity_reserved: Listing.capacity_reserved - 1},
        synchronize_session=False,
    )
    if not returned:
        logger.error(
            "Listing %s had no reserved portion to return for booking %s; capacity counter is out of sync.",
            booking.listing_id, booking.id,
        )
    audit_trail.record(
        db, actor_id, action, booking.id,
        {"listing_id": str(booking.listing_id), "reason": reason},
        now=now,
    )
    return True


def _check_lost_cancel(db: Session, booking: Booking) -> None:
    """
    The status guard matched no row: another request moved the booking first.

    Losing to another cancel is fine; losing to complete or no-show is not.
    """
    db.refresh(booking)
    if booking.status != BookingStatus.CANCELLED.value:
        raise InvalidTransition(f"Cannot cancel a booking that is {booking.status}")


# ---------------------------------------------------------------------------
# Reserve
# ---------------------------------------------------------------------------


def reserve(db: Session, listing_id: UUID, guest_id: UUID, now: Optional[datetime] = None) -> Booking:
    """
    Take one portion of a listing for ``guest_id`` and open a PENDING booking.

    Raises NotFound, ListingClosed, ListingExpired, Unauthorized (host booking
    their own meal), DuplicateReservation or SoldOut.
    """
    now = ensure_utc(now) or utcnow()

    with atomic(db):
        listing = _get_listing(db, listing_id)
        if listing.status == "expired" or now > ensure_utc(listing.pickup_window_end):
            raise ListingExpired()
        if listing.status != "active":
            raise ListingClosed()
        if listing.host_id == guest_id:
            raise Unauthorized("Hosts cannot reserve their own meal")

        existing = db.query(Booking.id).filter(
            Booking.listing_id == listing_id,
            Booking.guest_id == guest_id,
            Booking.status.in_(_ACTIVE_VALUES),
        ).first()
        if existing:
            raise DuplicateReservation()

        taken = (
            db.query(Listing)
            .filter(
                Listing.id == listing_id,
                Listing.status == "active",
                Listing.capacity_reserved < Listing.capacity_total,
            )
            .update(
                {Listing.capacity_reserved: Listing.capacity_reserved + 1},
                synchronize_session=False,
            )
        )
        if not taken:
            # Either the last portion went or the listing closed since it was read
            db.refresh(listing)
            if listing.status == "expired":
                raise ListingExpired()
            if listing.status != "active":
                raise ListingClosed()
            logger.info("Listing %s sold out; reservation by %s refused.", listing_id, guest_id)
            raise SoldOut()

        booking = Booking(
            listing_id=listing_id,
            guest_id=guest_id,
            status=transition(BookingStatus.NONE, BookingEvent.RESERVE).value,
            created_at=now,
        )
        db.add(booking)
        try:
            db.flush()
        except IntegrityError:
            # A concurrent request for the same guest won the unique index
            raise DuplicateReservation() from None

        audit_trail.record(
            db, guest_id, audit_trail.BOOKING_RESERVED, booking.id,
            {"listing_id": str(listing_id)},
            now=now,
        )

    db.refresh(booking)
    logger.info("Booking %s reserved on listing %s.", booking.id, listing_id)
    return booking


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


def cancel(
    db: Session,
    booking_id: UUID,
    actor_id: UUID,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Guest-initiated cancellation.

    Allowed within the grace period after the booking was created and only
    before the pickup window opens. Cancelling an already cancelled booking
    is a no-op.
    """
    now = ensure_utc(now) or utcnow()

    with atomic(db):
        booking = _get_booking(db, booking_id)
        if booking.guest_id != actor_id:
            raise Unauthorized("Only the guest can cancel this booking")
        if booking.status == BookingStatus.CANCELLED.value:
            return booking
        transition(booking.status, BookingEvent.CANCEL)

        listing = _get_listing(db, booking.listing_id)
        if not within_grace(booking, now):
            raise GraceExpired()
        if now >= ensure_utc(listing.pickup_window_start):
            raise GraceExpired("The pickup window has already started")

        released = release_portion(db, booking, actor_id, audit_trail.BOOKING_CANCELLED, reason, now)
        if not released:
            _check_lost_cancel(db, booking)

    db.refresh(booking)
    if released:
        logger.info("Booking %s cancelled by guest.", booking_id)
    return booking


def host_cancel(
    db: Session,
    booking_id: UUID,
    actor_id: Optional[UUID],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    as_moderator: bool = False,
) -> Booking:
    """Host or moderator cancellation; not bound by the guest grace period."""
    now = ensure_utc(now) or utcnow()

    with atomic(db):
        booking = _get_booking(db, booking_id)
        listing = _get_listing(db, booking.listing_id)
        _require_host_or_moderator(listing, actor_id, as_moderator)
        if booking.status == BookingStatus.CANCELLED.value:
            return booking
        transition(booking.status, BookingEvent.HOST_CANCEL)
        released = release_portion(db, booking, actor_id, audit_trail.BOOKING_HOST_CANCELLED, reason, now)
        if not released:
            _check_lost_cancel(db, booking)

    db.refresh(booking)
    if released:
        logger.info("Booking %s cancelled by host/moderator %s.", booking_id, actor_id)
    return booking


# ---------------------------------------------------------------------------
# Confirm / Complete / No-show
# ---------------------------------------------------------------------------


def confirm(
    db: Session,
    booking_id: UUID,
    actor_id: Optional[UUID],
    now: Optional[datetime] = None,
    as_moderator: bool = False,
) -> Booking:
    """PENDING -> CONFIRMED. Confirming a confirmed booking is a no-op."""
    now = ensure_utc(now) or utcnow()

    with atomic(db):
        booking = _get_booking(db, booking_id)
        listing = _get_listing(db, booking.listing_id)
        _require_host_or_moderator(listing, actor_id, as_moderator)
        if booking.status == BookingStatus.CONFIRMED.value:
            return booking
        transition(booking.status, BookingEvent.CONFIRM)

        flipped = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == BookingStatus.PENDING.value)
            .update(
                {Booking.status: BookingStatus.CONFIRMED.value, Booking.confirmed_at: now},
                synchronize_session=False,
            )
        )
        if not flipped:
            db.refresh(booking)
            if booking.status == BookingStatus.CONFIRMED.value:
                return booking
            transition(booking.status, BookingEvent.CONFIRM)

        audit_trail.record(
            db, actor_id, audit_trail.BOOKING_CONFIRMED, booking_id,
            {"listing_id": str(booking.listing_id)},
            now=now,
        )

    db.refresh(booking)
    logger.info("Booking %s confirmed.", booking_id)
    return booking


def _finish(
    db: Session,
    booking_id: UUID,
    actor_id: Optional[UUID],
    event: BookingEvent,
    now: Optional[datetime],
    as_moderator: bool,
) -> Booking:
    now = ensure_utc(now) or utcnow()
    if event == BookingEvent.COMPLETE:
        action = audit_trail.BOOKING_COMPLETED
        values = {Booking.completed_at: now}
    else:
        action = audit_trail.BOOKING_NO_SHOW
        values = {Booking.no_show_marked_at: now, Booking.no_show_marked_by: actor_id}

    with atomic(db):
        booking = _get_booking(db, booking_id)
        listing = _get_listing(db, booking.listing_id)
        _require_host_or_moderator(listing, actor_id, as_moderator)
        target = transition(booking.status, event)

        values[Booking.status] = target.value
        flipped = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED.value)
            .update(values, synchronize_session=False)
        )
        if not flipped:
            raise InvalidTransition("Booking changed state concurrently")

        audit_trail.record(
            db, actor_id, action, booking_id,
            {"listing_id": str(booking.listing_id)},
            now=now,
        )

    db.refresh(booking)
    logger.info("Booking %s is now %s.", booking_id, booking.status)
    return booking


def complete(
    db: Session,
    booking_id: UUID,
    actor_id: Optional[UUID],
    now: Optional[datetime] = None,
    as_moderator: bool = False,
) -> Booking:
    """CONFIRMED -> COMPLETED."""
    return _finish(db, booking_id, actor_id, BookingEvent.COMPLETE, now, as_moderator)


def mark_no_show(
    db: Session,
    booking_id: UUID,
    actor_id: Optional[UUID],
    now: Optional[datetime] = None,
    as_moderator: bool = False,
) -> Booking:
    """CONFIRMED -> NO_SHOW."""
    return _finish(db, booking_id, actor_id, BookingEvent.MARK_NO_SHOW, now, as_moderator)
