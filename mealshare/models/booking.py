import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from mealshare.db.session import Base

_ACTIVE_PREDICATE = text("status IN ('pending', 'confirmed')")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(UUID(as_uuid=True), ForeignKey("listings.id"), nullable=False, index=True)
    guest_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, confirmed, cancelled, completed, no_show
    created_at = Column(DateTime(timezone=True), nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(UUID(as_uuid=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    no_show_marked_at = Column(DateTime(timezone=True), nullable=True)
    no_show_marked_by = Column(UUID(as_uuid=True), nullable=True)

    listing = relationship("Listing", back_populates="bookings")

    __table_args__ = (
        # At most one pending/confirmed booking per guest and listing
        Index(
            "uq_bookings_active_guest",
            "listing_id",
            "guest_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, listing={self.listing_id}, guest={self.guest_id}, status={self.status})>"
