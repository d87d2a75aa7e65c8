"""
Public ("fuzzy") coordinates for listings.

The offset is derived from the address identity hash only. Every listing
published from the same address is shifted by the same vector, so averaging
public pins across a host's listings converges on the fuzzed point, not on
the real address.
"""

import math
from typing import NamedTuple

from mealshare.core.config import settings
from mealshare.domain.address_identity import HASH_MASK

# Knuth's multiplicative constant; distinct odd salts give independent streams
_GOLDEN = 2654435761
_MASK_32 = 0xFFFFFFFF
_RADIUS_SALT = 1
_ANGLE_SALT = 2

# Offsets never fall closer than a third of the maximum (~100 m)
MIN_RADIUS_FRACTION = 1 / 3

# cos(latitude) floor so longitudes stay finite near the poles
_MIN_LON_SCALE = 0.01


class Offset(NamedTuple):
    lat: float
    lon: float


def _sub_hash(identity_hash: int, salt: int) -> int:
    x = (identity_hash ^ (salt * _GOLDEN)) & _MASK_32
    x = (((x >> 16) ^ x) * 0x45D9F3B) & _MASK_32
    x = (((x >> 16) ^ x) * 0x45D9F3B) & _MASK_32
    x = (x >> 16) ^ x
    return x & HASH_MASK


def _unit(identity_hash: int, salt: int) -> float:
    """Map a sub-hash onto [0, 1)."""
    return _sub_hash(identity_hash, salt) / (HASH_MASK + 1)


def offset_for(identity_hash: int, lat: float, max_offset: float = None) -> Offset:
    """
    Offset vector (in degrees) applied to every listing with this identity.

    Radius is spread over an annulus between ``MIN_RADIUS_FRACTION`` and 1 of
    ``max_offset`` (sqrt keeps the density roughly uniform by area); the
    longitude part is stretched by 1/cos(lat) so the shift is about the same
    distance in meters in every direction.
    """
    if max_offset is None:
        max_offset = settings.FUZZ_MAX_OFFSET_DEGREES

    u = _unit(identity_hash, _RADIUS_SALT)
    theta = _unit(identity_hash, _ANGLE_SALT) * 2 * math.pi
    radius = max_offset * (MIN_RADIUS_FRACTION + (1 - MIN_RADIUS_FRACTION) * math.sqrt(u))

    lon_scale = max(math.cos(math.radians(lat)), _MIN_LON_SCALE)
    return Offset(
        lat=radius * math.cos(theta),
        lon=radius * math.sin(theta) / lon_scale,
    )


def fuzz(real_lat: float, real_lon: float, identity_hash: int, max_offset: float = None) -> tuple:
    """Return ``(public_lat, public_lon)`` for a real coordinate."""
    offset = offset_for(identity_hash, real_lat, max_offset)
    public_lat = max(-90.0, min(90.0, real_lat + offset.lat))
    public_lon = real_lon + offset.lon
    # Wrap into [-180, 180)
    public_lon = (public_lon + 180.0) % 360.0 - 180.0
    return public_lat, public_lon
