"""Model definitions: mappers configure and DDL compiles for PostgreSQL."""

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import configure_mappers
from sqlalchemy.schema import CreateIndex, CreateTable

from mealshare.db.base import Base
from mealshare.models import AuditEntry, Booking, Listing


@pytest.mark.unit
def test_mappers_configure():
    configure_mappers()
    assert Listing.bookings.property.mapper.class_ is Booking
    assert Booking.listing.property.mapper.class_ is Listing


@pytest.mark.unit
def test_all_tables_registered():
    assert {"listings", "bookings", "audit_entries"} <= set(Base.metadata.tables)


@pytest.mark.unit
def test_listing_ddl_has_capacity_constraints():
    ddl = str(CreateTable(Listing.__table__).compile(dialect=postgresql.dialect()))

    assert "capacity_reserved <= capacity_total" in ddl
    assert "address_identity_hash INTEGER NOT NULL" in ddl


@pytest.mark.unit
def test_active_booking_index_is_partial_and_unique():
    index = next(i for i in Booking.__table__.indexes if i.name == "uq_bookings_active_guest")
    ddl = str(CreateIndex(index).compile(dialect=postgresql.dialect()))

    assert ddl.startswith("CREATE UNIQUE INDEX uq_bookings_active_guest")
    assert "WHERE status IN ('pending', 'confirmed')" in ddl


@pytest.mark.unit
def test_audit_details_stored_as_metadata_column():
    assert "metadata" in AuditEntry.__table__.c
    assert AuditEntry.details.property.columns[0].name == "metadata"
