from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from mealshare.db.transaction import atomic
from mealshare.models.listing import Listing
from mealshare.services import audit_trail
from mealshare.utils.clock import ensure_utc, utcnow


def close_expired_listings(db: Session, now: Optional[datetime] = None) -> int:
    """
    Soft-close active listings whose pickup window has ended.

    Listings are never deleted; bookings that reference them are left as
    they are for the host/moderation flow to resolve.

    Returns the number of listings closed.
    """
    now = ensure_utc(now) or utcnow()

    with atomic(db):
        stale_ids = [
            row.id
            for row in db.query(Listing.id).filter(
                Listing.status == "active",
                Listing.pickup_window_end < now,
            )
        ]
        if not stale_ids:
            return 0

        db.query(Listing).filter(
            Listing.id.in_(stale_ids),
            Listing.status == "active",
        ).update(
            {Listing.status: "expired", Listing.updated_at: now},
            synchronize_session=False,
        )
        for listing_id in stale_ids:
            audit_trail.record(db, None, audit_trail.LISTING_EXPIRED, listing_id, now=now)

    return len(stale_ids)
