"""
Append-only audit trail of state changes.

Entries are added to the caller's session so they commit (or roll back)
together with the change they describe. Reading is for moderation tooling.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from mealshare.models.audit import AuditEntry
from mealshare.utils.clock import utcnow

logger = logging.getLogger(__name__)

BOOKING_RESERVED = "booking.reserved"
BOOKING_CONFIRMED = "booking.confirmed"
BOOKING_CANCELLED = "booking.cancelled"
BOOKING_HOST_CANCELLED = "booking.host_cancelled"
BOOKING_COMPLETED = "booking.completed"
BOOKING_NO_SHOW = "booking.no_show"
LISTING_PUBLISHED = "listing.published"
LISTING_UPDATED = "listing.updated"
LISTING_WITHDRAWN = "listing.withdrawn"
LISTING_EXPIRED = "listing.expired"


def record(
    db: Session,
    actor_id: Optional[UUID],
    action: str,
    target_id: UUID,
    metadata: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> AuditEntry:
    entry = AuditEntry(
        actor_id=actor_id,
        action=action,
        target_id=target_id,
        details=metadata or {},
        created_at=now or utcnow(),
    )
    db.add(entry)
    logger.debug("Audit %s on %s by %s", action, target_id, actor_id)
    return entry


def list_entries(
    db: Session,
    target_id: Optional[UUID] = None,
    actor_id: Optional[UUID] = None,
    action: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[AuditEntry], int]:
    """Return one page of entries (oldest first) and the total count."""
    query = db.query(AuditEntry)
    if target_id:
        query = query.filter(AuditEntry.target_id == target_id)
    if actor_id:
        query = query.filter(AuditEntry.actor_id == actor_id)
    if action:
        query = query.filter(AuditEntry.action == action)

    total = query.count()
    entries = (
        query.order_by(AuditEntry.created_at.asc(), AuditEntry.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return entries, total
