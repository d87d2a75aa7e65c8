from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from mealshare.db.session import get_db
from mealshare.api.deps import get_current_user_id
from mealshare.core.errors import NotFound
from mealshare.models.booking import Booking
from mealshare.models.listing import Listing
from mealshare.schemas.booking import Booking as BookingSchema, BookingCancel, BookingCreate
from mealshare.schemas.common import PaginatedResponse
from mealshare.services import reservations

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _load_visible_booking(booking_id: UUID, user_id: UUID, db: Session) -> Booking:
    """A booking is visible to its guest and to the host of its listing."""
    booking = (
        db.query(Booking)
        .join(Listing, Listing.id == Booking.listing_id)
        .filter(
            Booking.id == booking_id,
            (Booking.guest_id == user_id) | (Listing.host_id == user_id),
        )
        .first()
    )
    if not booking:
        raise NotFound("Booking not found")
    return booking


# ---------------------------------------------------------------------------
# Guest
# ---------------------------------------------------------------------------


@router.post("/", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    guest_id: UUID = Depends(get_current_user_id),
):
    """
    Reserve one portion of a meal.

    Fails with 409 when the meal is sold out, the guest already holds an
    open reservation for it, or its pickup window has passed.
    """
    return reservations.reserve(db, data.listing_id, guest_id)


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_my_bookings(
    status: Optional[str] = Query(
        None, description="Filter by status: pending, confirmed, cancelled, completed, no_show"
    ),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    guest_id: UUID = Depends(get_current_user_id),
):
    """Return the authenticated guest's bookings, newest first."""
    query = db.query(Booking).filter(Booking.guest_id == guest_id)
    if status:
        query = query.filter(Booking.status == status)

    total = query.count()
    bookings = (
        query.order_by(Booking.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[BookingSchema.model_validate(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    return _load_visible_booking(booking_id, user_id, db)


@router.patch("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: UUID,
    data: Optional[BookingCancel] = Body(None),
    db: Session = Depends(get_db),
    guest_id: UUID = Depends(get_current_user_id),
):
    """
    Cancel a reservation within the free cancellation period.
    - Returns the portion to the meal.
    - Cancelling twice is harmless.
    """
    reason = data.reason if data else None
    return reservations.cancel(db, booking_id, guest_id, reason=reason)


# ---------------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------------


@router.patch("/{booking_id}/confirm", response_model=BookingSchema)
def confirm_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
):
    """Confirm a pending reservation. The guest can see the exact address from now on."""
    return reservations.confirm(db, booking_id, host_id)


@router.patch("/{booking_id}/host-cancel", response_model=BookingSchema)
def host_cancel_booking(
    booking_id: UUID,
    data: Optional[BookingCancel] = Body(None),
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
):
    reason = data.reason if data else None
    return reservations.host_cancel(db, booking_id, host_id, reason=reason)


@router.patch("/{booking_id}/complete", response_model=BookingSchema)
def complete_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
):
    return reservations.complete(db, booking_id, host_id)


@router.patch("/{booking_id}/no-show", response_model=BookingSchema)
def mark_no_show(
    booking_id: UUID,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
):
    return reservations.mark_no_show(db, booking_id, host_id)
