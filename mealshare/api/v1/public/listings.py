from dataclasses import asdict
from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mealshare.db.session import get_db
from mealshare.api.deps import get_current_user_id, get_geocoder, get_optional_user_id
from mealshare.core.errors import NotFound, Unauthorized
from mealshare.models.listing import Listing
from mealshare.schemas.common import PaginatedResponse
from mealshare.schemas.listing import (
    ExactAddressOut,
    ListingCreate,
    ListingDetail,
    ListingPublic,
    ListingUpdate,
)
from mealshare.services import disclosure, listings as listing_service
from mealshare.services.geocoder import Geocoder

router = APIRouter(prefix="/listings", tags=["Listings"])


def _detail(db: Session, listing: Listing, viewer_id: Optional[UUID]) -> ListingDetail:
    """Public view plus the exact address when the viewer is entitled to it."""
    detail = ListingDetail.model_validate(listing)
    try:
        address = disclosure.get_exact_address(db, listing.id, viewer_id)
    except Unauthorized:
        return detail
    detail.exact_address = ExactAddressOut(**asdict(address))
    return detail


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[ListingPublic])
def list_listings(
    neighborhood: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active listings, newest first. Only fuzzed coordinates are returned."""
    query = db.query(Listing).filter(Listing.status == "active")
    if neighborhood:
        query = query.filter(Listing.neighborhood.ilike(f"%{neighborhood}%"))

    query = query.order_by(Listing.created_at.desc())
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[ListingPublic.model_validate(l) for l in rows],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{listing_id}", response_model=ListingDetail)
def get_listing(
    listing_id: UUID,
    db: Session = Depends(get_db),
    viewer_id: Optional[UUID] = Depends(get_optional_user_id),
):
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise NotFound("Listing not found")
    return _detail(db, listing, viewer_id)


@router.get("/{listing_id}/exact-address", response_model=ExactAddressOut)
def get_exact_address(
    listing_id: UUID,
    db: Session = Depends(get_db),
    viewer_id: UUID = Depends(get_current_user_id),
):
    """Exact pickup address for the host or a guest with a confirmed booking."""
    address = disclosure.get_exact_address(db, listing_id, viewer_id)
    return ExactAddressOut(**asdict(address))


# ---------------------------------------------------------------------------
# Host actions
# ---------------------------------------------------------------------------


@router.post("/", response_model=ListingDetail, status_code=status.HTTP_201_CREATED)
def publish_listing(
    data: ListingCreate,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
    geocoder: Geocoder = Depends(get_geocoder),
):
    listing = listing_service.publish_listing(db, host_id, data, geocoder)
    return _detail(db, listing, host_id)


@router.patch("/{listing_id}", response_model=ListingDetail)
def update_listing(
    listing_id: UUID,
    data: ListingUpdate,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
    geocoder: Geocoder = Depends(get_geocoder),
):
    """Edit a listing; only allowed in the first minutes after publishing."""
    listing = listing_service.update_listing(db, listing_id, host_id, data, geocoder)
    return _detail(db, listing, host_id)


@router.post("/{listing_id}/withdraw", response_model=ListingDetail)
def withdraw_listing(
    listing_id: UUID,
    db: Session = Depends(get_db),
    host_id: UUID = Depends(get_current_user_id),
):
    """Soft-close a listing. Open bookings are cancelled and their portions released."""
    listing = listing_service.withdraw_listing(db, listing_id, host_id)
    return _detail(db, listing, host_id)
