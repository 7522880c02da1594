# tests/test_geocoding.py
import httpx
import pytest
from propertymap.errors import ConfigurationError, GeocodingError
from propertymap.geocoding import GoogleGeocoder, get_api_key

REVERSE_BODY = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "MG Road, Bengaluru, Karnataka 560001, India",
            "place_id": "ChIJ-best",
            "address_components": [
                {"long_name": "MG Road", "types": ["route"]},
                {"long_name": "Bengaluru", "types": ["locality", "political"]},
                {"long_name": "Karnataka", "types": ["administrative_area_level_1", "political"]},
            ],
            "geometry": {"location": {"lat": 12.9756, "lng": 77.6066}},
        },
        {
            "formatted_address": "Bengaluru, Karnataka, India",
            "place_id": "ChIJ-second",
            "address_components": [],
            "geometry": {"location": {"lat": 12.97, "lng": 77.59}},
        },
    ],
}


def make_geocoder(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GoogleGeocoder("secret", client=client, url="https://geo.test/json")


def test_reverse_geocode_uses_first_result():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json=REVERSE_BODY)

    result = make_geocoder(handler).reverse_geocode(12.9756, 77.6066)
    assert seen["latlng"] == "12.9756,77.6066"
    assert seen["key"] == "secret"
    assert result.place_id == "ChIJ-best"
    assert result.street == "MG Road"
    assert result.city == "Bengaluru"
    assert result.state == "Karnataka"


def test_reverse_geocode_defaults_missing_fields():
    body = {"status": "OK", "results": [{"address_components": []}]}
    result = make_geocoder(lambda r: httpx.Response(200, json=body)).reverse_geocode(0, 0)
    assert result.formatted_address == "Selected location"
    assert result.place_id == ""
    assert result.city is None


def test_zero_results_is_none():
    body = {"status": "ZERO_RESULTS", "results": []}
    geocoder = make_geocoder(lambda r: httpx.Response(200, json=body))
    assert geocoder.reverse_geocode(0, 0) is None
    assert geocoder.forward_geocode("nowhere at all") is None


def test_forward_geocode():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json=REVERSE_BODY)

    coords = make_geocoder(handler).forward_geocode("MG Road, Bengaluru")
    assert seen["address"] == "MG Road, Bengaluru"
    assert (coords.lat, coords.lng) == (12.9756, 77.6066)


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
    httpx.Response(500, text="boom"),
    httpx.Response(200, text="not json"),
])
def test_errors_raise_geocoding_error(response):
    geocoder = make_geocoder(lambda r: response)
    with pytest.raises(GeocodingError):
        geocoder.reverse_geocode(1, 1)


def test_transport_error_raises_geocoding_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(GeocodingError):
        make_geocoder(handler).forward_geocode("x")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        get_api_key()
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "k")
    assert get_api_key() == "k"
