from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mealshare.db.session import get_db
from mealshare.api.deps import get_current_admin
from mealshare.schemas.audit import AuditEntry
from mealshare.schemas.common import PaginatedResponse
from mealshare.schemas.listing import DuplicateAddressGroup
from mealshare.services import audit_trail, listings as listing_service

router = APIRouter(prefix="/admin", tags=["Admin - Moderation"])


@router.get("/audit", response_model=PaginatedResponse[AuditEntry])
def list_audit_entries(
    target_id: Optional[UUID] = Query(None, description="Booking or listing id"),
    actor_id: Optional[UUID] = Query(None),
    action: Optional[str] = Query(None, description="e.g. booking.cancelled"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    """Audit trail of state changes, oldest first."""
    entries, total = audit_trail.list_entries(
        db, target_id=target_id, actor_id=actor_id, action=action, page=page, limit=limit
    )
    return PaginatedResponse(
        data=[AuditEntry.model_validate(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/listings/duplicates", response_model=List[DuplicateAddressGroup])
def list_duplicate_addresses(
    db: Session = Depends(get_db),
    _: bool = Depends(get_current_admin),
):
    """Physical addresses used by more than one host account."""
    return listing_service.find_duplicate_addresses(db)
