from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from mealshare.db.session import get_db
from mealshare.api.deps import get_current_admin
from mealshare.models.booking import Booking
from mealshare.schemas.booking import Booking as BookingSchema, BookingCancel
from mealshare.schemas.common import PaginatedResponse
from mealshare.services import reservations

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_all_bookings(
    # --- Filters ---
    listing_id: Optional[UUID] = Query(None, description="Filter by listing"),
    guest_id: Optional[UUID] = Query(None, description="Filter by guest"),
    status: Optional[str] = Query(None, description="Filter by booking status (pending, confirmed, cancelled, completed, no_show)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    """Return all bookings across every listing, newest first."""
    query = db.query(Booking)
    if listing_id:
        query = query.filter(Booking.listing_id == listing_id)
    if guest_id:
        query = query.filter(Booking.guest_id == guest_id)
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


# Moderator actions are recorded in the audit trail without an actor id


@router.patch("/{booking_id}/confirm", response_model=BookingSchema)
def confirm_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    return reservations.confirm(db, booking_id, None, as_moderator=True)


@router.patch("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: UUID,
    data: Optional[BookingCancel] = Body(None),
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    """Support cancellation, e.g. after the guest's grace period has ended."""
    reason = data.reason if data else None
    return reservations.host_cancel(db, booking_id, None, reason=reason, as_moderator=True)


@router.patch("/{booking_id}/complete", response_model=BookingSchema)
def complete_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    return reservations.complete(db, booking_id, None, as_moderator=True)


@router.patch("/{booking_id}/no-show", response_model=BookingSchema)
def mark_no_show(
    booking_id: UUID,
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    return reservations.mark_no_show(db, booking_id, None, as_moderator=True)
