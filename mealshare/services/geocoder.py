"""Geocoding of host addresses. Uses OpenStreetMap Nominatim (no API key needed)."""
import logging
from typing import NamedTuple, Optional

import httpx

from mealshare.core.config import settings
from mealshare.core.errors import GeocodingFailed

logger = logging.getLogger(__name__)


class GeoPoint(NamedTuple):
    lat: float
    lon: float


class Geocoder:
    """Resolves an address to a coordinate. Subclasses talk to a real provider."""

    def geocode(self, street: str, city: str, postal_code: str) -> GeoPoint:
        raise NotImplementedError


def _build_query(street: str, city: str, postal_code: str) -> str:
    return f"{street}, {postal_code or ''} {city}".replace("  ", " ").strip()


class NominatimGeocoder(Geocoder):
    def __init__(
        self,
        url: str = None,
        user_agent: str = None,
        country_codes: str = None,
        timeout: float = None,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url or settings.GEOCODER_URL
        self.country_codes = country_codes if country_codes is not None else settings.GEOCODER_COUNTRY_CODES
        self._client = client or httpx.Client(
            timeout=timeout or settings.GEOCODER_TIMEOUT_SECONDS,
            headers={"User-Agent": user_agent or settings.GEOCODER_USER_AGENT},
        )

    def geocode(self, street: str, city: str, postal_code: str) -> GeoPoint:
        params = {"format": "json", "q": _build_query(street, city, postal_code), "limit": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        try:
            resp = self._client.get(self.url, params=params)
            resp.raise_for_status()
            results = resp.json()
        except httpx.HTTPError as e:
            logger.warning("Geocoder request failed: %s", e)
            raise GeocodingFailed("Geocoding service unavailable") from e

        if not isinstance(results, list) or not results:
            logger.info("No geocoding result for a submitted address in %s.", city)
            raise GeocodingFailed()

        first = results[0]
        try:
            return GeoPoint(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingFailed("Geocoder returned an unreadable result") from e

    def close(self) -> None:
        self._client.close()
