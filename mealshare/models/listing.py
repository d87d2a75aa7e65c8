import uuid
from sqlalchemy import Column, String, DateTime, Float, Integer, Text, CheckConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from mealshare.db.session import Base


class Listing(Base):
    __tablename__ = "listings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    host_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    neighborhood = Column(String(120), nullable=True)

    # Exact location: only ever returned through the disclosure gate
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    real_lat = Column(Float, nullable=False)
    real_lon = Column(Float, nullable=False)

    # Fuzzed location shown to everyone
    public_lat = Column(Float, nullable=False)
    public_lon = Column(Float, nullable=False)
    address_identity_hash = Column(Integer, nullable=False, index=True)

    capacity_total = Column(Integer, nullable=False)
    capacity_reserved = Column(Integer, nullable=False, default=0)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    pickup_window_start = Column(DateTime(timezone=True), nullable=False)
    pickup_window_end = Column(DateTime(timezone=True), nullable=False)

    status = Column(String(20), nullable=False, default="active", index=True)  # active, withdrawn, expired
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    bookings = relationship("Booking", back_populates="listing")

    __table_args__ = (
        CheckConstraint("capacity_total >= 0", name="ck_listings_capacity_total_non_negative"),
        CheckConstraint(
            "capacity_reserved >= 0 AND capacity_reserved <= capacity_total",
            name="ck_listings_capacity_reserved_bounds",
        ),
    )

    @property
    def capacity_available(self) -> int:
        return self.capacity_total - self.capacity_reserved

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, host={self.host_id}, reserved={self.capacity_reserved}/{self.capacity_total})>"
