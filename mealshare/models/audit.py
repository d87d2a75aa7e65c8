import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
from mealshare.db.session import Base


class AuditEntry(Base):
    __tablename__ = "audit_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    actor_id = Column(UUID(as_uuid=True), nullable=True, index=True)  # None for system jobs
    action = Column(String(50), nullable=False, index=True)  # booking.reserved, listing.withdrawn, ...
    target_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
