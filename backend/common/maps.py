"""
Mapping / places provider client.

Wraps the Google Maps web services used by the app:
    - geocode(address) -> {lat, lng, formatted_address}
    - reverse_geocode(lat, lng) -> address
    - autocomplete(text) -> predictions
    - nearby_places(lat, lng, keyword, radius) -> places

Every call returns a MapsResult instead of raising, so callers can surface a
failure notice without try/except around each request. Calls are single attempts
(no retries).
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from common.conf import get_setting

logger = logging.getLogger(__name__)


@dataclass
class MapsResult:
    """Result-or-error wrapper for provider calls."""
    ok: bool
    value: Any = None
    error: str = ""
    stale: bool = False


class MapsClient:
    """Thin HTTP client for the mapping provider."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, session=None):
        self.api_key = api_key if api_key is not None else get_setting("MAPS_API_KEY")
        self.base_url = (base_url or get_setting("MAPS_BASE_URL")).rstrip("/")
        self.session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any]) -> MapsResult:
        if not self.api_key:
            return MapsResult(ok=False, error="Maps API key is not configured")

        params = {**params, "key": self.api_key}
        try:
            response = self.session.get(f"{self.base_url}/{path}", params=params)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Maps request %s failed: %s", path, e)
            return MapsResult(ok=False, error=str(e))

        status = payload.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            message = payload.get("error_message") or status or "Unknown provider error"
            logger.warning("Maps request %s returned %s", path, message)
            return MapsResult(ok=False, error=message)

        return MapsResult(ok=True, value=payload)

    def geocode(self, address: str) -> MapsResult:
        result = self._get("geocode/json", {"address": address})
        if not result.ok:
            return result

        matches = result.value.get("results") or []
        if not matches:
            return MapsResult(ok=False, error=f"No results for '{address}'")

        first = matches[0]
        location = first["geometry"]["location"]
        return MapsResult(ok=True, value={
            "lat": location["lat"],
            "lng": location["lng"],
            "formatted_address": first.get("formatted_address", address),
        })

    def reverse_geocode(self, lat: float, lng: float) -> MapsResult:
        result = self._get("geocode/json", {"latlng": f"{lat},{lng}"})
        if not result.ok:
            return result

        matches = result.value.get("results") or []
        if not matches:
            return MapsResult(ok=False, error="No address found for location")
        return MapsResult(ok=True, value=matches[0].get("formatted_address", ""))

    def autocomplete(self, text: str) -> MapsResult:
        result = self._get("place/autocomplete/json", {"input": text})
        if not result.ok:
            return result

        predictions = [
            {"place_id": p.get("place_id"), "description": p.get("description")}
            for p in result.value.get("predictions", [])
        ]
        return MapsResult(ok=True, value=predictions)

    def nearby_places(self, lat: float, lng: float, keyword: str, radius: int = 5000) -> MapsResult:
        result = self._get("place/nearbysearch/json", {
            "location": f"{lat},{lng}",
            "radius": radius,
            "keyword": keyword,
        })
        if not result.ok:
            return result

        places: List[Dict[str, Any]] = []
        for place in result.value.get("results", []):
            location = place.get("geometry", {}).get("location", {})
            places.append({
                "place_id": place.get("place_id"),
                "name": place.get("name"),
                "address": place.get("vicinity", ""),
                "lat": location.get("lat"),
                "lng": location.get("lng"),
            })
        return MapsResult(ok=True, value=places)


class AutocompleteSession:
    """
    Autocomplete with stale-response suppression.

    Each query bumps a generation counter; a response whose generation is no
    longer current is returned with ``stale=True`` and should be dropped.
    """

    def __init__(self, client: Optional[MapsClient] = None):
        self.client = client or MapsClient()
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self):
        """Invalidate any in-flight query."""
        with self._lock:
            self._generation += 1

    def query(self, text: str) -> MapsResult:
        with self._lock:
            self._generation += 1
            generation = self._generation

        result = self.client.autocomplete(text)

        if generation != self._generation:
            return MapsResult(ok=False, error="Superseded by a newer query", stale=True)
        return result
