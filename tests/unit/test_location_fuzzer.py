"""Tests for the public coordinate fuzzing."""

import math

import pytest

from mealshare.domain.address_identity import identify
from mealshare.domain.location_fuzzer import MIN_RADIUS_FRACTION, fuzz, offset_for

MAX_OFFSET = 0.003
LAT, LON = 47.5596, 7.5886


def _distance_deg(lat, dlat, dlon):
    """Offset length in degrees of latitude (longitude scaled back by cos(lat))."""
    return math.hypot(dlat, dlon * math.cos(math.radians(lat)))


@pytest.mark.unit
def test_fuzz_is_deterministic():
    h = identify("Main Street 1", "Basel", "4051")
    assert fuzz(LAT, LON, h) == fuzz(LAT, LON, h)


@pytest.mark.unit
def test_same_identity_applies_same_offset_vector():
    h = identify("Main Street 1", "Basel", "4051")

    lat1, lon1 = fuzz(LAT, LON, h)
    lat2, lon2 = fuzz(LAT, LON + 0.05, h)
    assert lat1 - LAT == pytest.approx(lat2 - LAT, abs=1e-12)
    assert lon1 - LON == pytest.approx(lon2 - (LON + 0.05), abs=1e-9)

    # Latitude component does not depend on the coordinate at all
    lat3, _ = fuzz(LAT + 0.2, LON, h)
    assert lat3 - (LAT + 0.2) == pytest.approx(lat1 - LAT, abs=1e-12)


@pytest.mark.unit
def test_public_coordinate_is_real_plus_offset():
    h = identify("Spalenberg 12", "Basel", "4051")
    offset = offset_for(h, LAT)
    public_lat, public_lon = fuzz(LAT, LON, h)
    assert public_lat == pytest.approx(LAT + offset.lat, abs=1e-12)
    assert public_lon == pytest.approx(LON + offset.lon, abs=1e-9)


@pytest.mark.unit
def test_averaging_listings_from_one_address_reveals_nothing_new():
    h = identify("Main Street 1", "Basel", "4051")
    points = [fuzz(LAT, LON, h) for _ in range(25)]

    assert len(set(points)) == 1
    mean_lat = sum(p[0] for p in points) / len(points)
    mean_lon = sum(p[1] for p in points) / len(points)
    assert (mean_lat, mean_lon) == pytest.approx(points[0])
    assert (mean_lat, mean_lon) != pytest.approx((LAT, LON), abs=1e-4)


@pytest.mark.unit
def test_offset_magnitude_is_bounded():
    for i in range(300):
        h = identify(f"Street {i}", "Basel", "4051")
        public_lat, public_lon = fuzz(LAT, LON, h)
        d = _distance_deg(LAT, public_lat - LAT, public_lon - LON)
        assert MAX_OFFSET * MIN_RADIUS_FRACTION - 1e-9 <= d <= MAX_OFFSET + 1e-9


@pytest.mark.unit
def test_offsets_spread_in_every_direction():
    quadrants = set()
    offsets = set()
    for i in range(200):
        offset = offset_for(identify(f"Street {i}", "Basel", "4051"), LAT)
        quadrants.add((offset.lat >= 0, offset.lon >= 0))
        offsets.add(offset)

    assert len(quadrants) == 4
    assert len(offsets) == 200


@pytest.mark.unit
def test_max_offset_can_be_overridden():
    h = identify("Main Street 1", "Basel", "4051")
    small = offset_for(h, LAT, max_offset=0.001)
    large = offset_for(h, LAT, max_offset=0.003)
    assert large.lat == pytest.approx(small.lat * 3)
    assert large.lon == pytest.approx(small.lon * 3)


@pytest.mark.unit
def test_longitude_is_wrapped_at_antimeridian():
    h = identify("Main Street 1", "Basel", "4051")
    _, lon = fuzz(0.0, 179.9999, h)
    assert -180.0 <= lon < 180.0
