"""Tests for the Nominatim geocoder client."""

import httpx
import pytest

from mealshare.core.errors import GeocodingFailed
from mealshare.services.geocoder import GeoPoint, NominatimGeocoder


def _geocoder(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return NominatimGeocoder(url="https://geo.test/search", client=client, **kwargs)


@pytest.mark.unit
def test_returns_first_result():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"lat": "47.5596", "lon": "7.5886"}, {"lat": "0", "lon": "0"}])

    point = _geocoder(handler, country_codes="ch").geocode("Main Street 1", "Basel", "4051")

    assert point == GeoPoint(lat=47.5596, lon=7.5886)
    assert seen["params"]["q"] == "Main Street 1, 4051 Basel"
    assert seen["params"]["countrycodes"] == "ch"
    assert seen["params"]["format"] == "json"


@pytest.mark.unit
def test_country_filter_can_be_disabled():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"lat": "1.5", "lon": "2.5"}])

    _geocoder(handler, country_codes="").geocode("Main Street 1", "Basel", "")

    assert "countrycodes" not in seen["params"]
    assert seen["params"]["q"] == "Main Street 1, Basel"


@pytest.mark.unit
def test_empty_result_fails():
    geocoder = _geocoder(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(GeocodingFailed):
        geocoder.geocode("Nowhere 0", "Basel", "4000")


@pytest.mark.unit
def test_server_error_fails():
    geocoder = _geocoder(lambda request: httpx.Response(503))

    with pytest.raises(GeocodingFailed) as exc_info:
        geocoder.geocode("Main Street 1", "Basel", "4051")
    assert exc_info.value.message == "Geocoding service unavailable"


@pytest.mark.unit
def test_network_error_fails():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocodingFailed):
        _geocoder(handler).geocode("Main Street 1", "Basel", "4051")


@pytest.mark.unit
def test_unreadable_result_fails():
    geocoder = _geocoder(lambda request: httpx.Response(200, json=[{"display_name": "Basel"}]))

    with pytest.raises(GeocodingFailed):
        geocoder.geocode("Main Street 1", "Basel", "4051")
