# propertymap/geocoding.py
"""Address <-> coordinate resolution through the Google Geocoding web service."""
import os
from typing import Any, Dict, List, Optional
import httpx
from dotenv import load_dotenv
from .errors import ConfigurationError, GeocodingError
from .schemas import Coordinates, ReverseGeocodeResult
from .utils import logger

load_dotenv()

GEOCODE_URL = os.getenv("GEOCODE_URL", "https://maps.googleapis.com/maps/api/geocode/json")
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", "10"))


def get_api_key() -> str:
    key = os.getenv("GOOGLE_MAPS_API_KEY")
    if not key:
        raise ConfigurationError("Google Maps API key is required")
    return key


def _component(components: List[Dict[str, Any]], kind: str) -> Optional[str]:
    for c in components:
        if kind in c.get("types", []):
            return c.get("long_name")
    return None


class GoogleGeocoder:
    def __init__(self, api_key: str, client: Optional[httpx.Client] = None, url: str = GEOCODE_URL):
        self.api_key = api_key
        self.url = url
        self.client = client or httpx.Client(timeout=GEOCODER_TIMEOUT)

    def close(self):
        self.client.close()

    def _results(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        params = dict(params, key=self.api_key)
        try:
            resp = self.client.get(self.url, params=params)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding request failed: %s", e)
            raise GeocodingError("Geocoding service unavailable") from e
        status = body.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            logger.warning("Geocoder answered %s: %s", status, body.get("error_message"))
            raise GeocodingError("Geocoding failed", details={"status": status})
        return body.get("results") or []

    def reverse_geocode(self, lat: float, lng: float) -> Optional[ReverseGeocodeResult]:
        results = self._results({"latlng": f"{lat},{lng}"})
        if not results:
            return None
        # the first result is the best match
        best = results[0]
        components = best.get("address_components", [])
        return ReverseGeocodeResult(
            formatted_address=best.get("formatted_address") or "Selected location",
            place_id=best.get("place_id") or "",
            state=_component(components, "administrative_area_level_1"),
            city=_component(components, "locality"),
            street=_component(components, "route"),
        )

    def forward_geocode(self, address: str) -> Optional[Coordinates]:
        results = self._results({"address": address})
        if not results:
            return None
        location = results[0]["geometry"]["location"]
        return Coordinates(lat=location["lat"], lng=location["lng"])
