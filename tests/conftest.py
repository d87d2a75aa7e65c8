"""Shared pytest fixtures and configuration."""

import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment variables before the app reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./mealshare_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ADMIN_SECRET_KEY", "test-admin-key")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from mealshare.db.base import Base  # noqa: E402
from mealshare.db.session import build_engine  # noqa: E402
from mealshare.models.listing import Listing  # noqa: E402
from mealshare.domain.address_identity import identify  # noqa: E402
from mealshare.domain.location_fuzzer import fuzz  # noqa: E402
from mealshare.services.geocoder import Geocoder, GeoPoint  # noqa: E402

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

BASEL = GeoPoint(lat=47.5596, lon=7.5886)


class FakeGeocoder(Geocoder):
    """Returns a fixed point per postal code and records every call."""

    def __init__(self, points=None, default=BASEL):
        self.points = points or {}
        self.default = default
        self.calls = []

    def geocode(self, street, city, postal_code):
        self.calls.append((street, city, postal_code))
        return self.points.get(postal_code, self.default)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'mealshare.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def host_id():
    return uuid.uuid4()


@pytest.fixture
def guest_id():
    return uuid.uuid4()


@pytest.fixture
def make_listing(db, host_id):
    """Insert a listing directly, bypassing the publication flow."""

    def _make(
        capacity_total=3,
        capacity_reserved=0,
        created_at=NOW,
        pickup_window_start=NOW + timedelta(hours=6),
        pickup_window_end=NOW + timedelta(hours=8),
        host=None,
        street="Main Street 1",
        city="Basel",
        postal_code="4051",
        status="active",
    ):
        identity = identify(street, city, postal_code)
        public_lat, public_lon = fuzz(BASEL.lat, BASEL.lon, identity)
        listing = Listing(
            host_id=host or host_id,
            title="Lentil curry",
            neighborhood="St. Johann",
            street=street,
            city=city,
            postal_code=postal_code,
            real_lat=BASEL.lat,
            real_lon=BASEL.lon,
            public_lat=public_lat,
            public_lon=public_lon,
            address_identity_hash=identity,
            capacity_total=capacity_total,
            capacity_reserved=capacity_reserved,
            scheduled_at=pickup_window_start,
            pickup_window_start=pickup_window_start,
            pickup_window_end=pickup_window_end,
            status=status,
            created_at=created_at,
        )
        db.add(listing)
        db.commit()
        db.refresh(listing)
        return listing

    return _make


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_geocoder():
    return FakeGeocoder
