"""
Geocoding through OpenStreetMap Nominatim.

Both lookups return plain dicts and never raise:
    {"success": True, "address": {...}}                  (reverse)
    {"success": True, "coordinates": {...}, "address": {...}}  (forward)
    {"success": False, "error": "...", "reason": "not_found" | "unavailable"}
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
UNAVAILABLE = "unavailable"


def _street(parts):
    road = parts.get("road", "")
    if parts.get("house_number"):
        return f"{parts['house_number']} {road}".strip()
    return road


def _address(display_name, parts):
    return {
        "full": display_name,
        "street": _street(parts),
        "city": parts.get("city") or parts.get("town") or parts.get("village") or "",
        "state": parts.get("state", ""),
        "country": parts.get("country", ""),
        "postal_code": parts.get("postcode", ""),
    }


class NominatimGeocoder:
    def __init__(self, base_url=None, user_agent=None, timeout=None):
        self.base_url = (base_url or settings.NOMINATIM_URL).rstrip("/")
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self.timeout = timeout or settings.GEOCODER_TIMEOUT

    def _get(self, endpoint, params):
        response = requests.get(
            f"{self.base_url}/{endpoint}",
            params={**params, "format": "json", "addressdetails": 1},
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def reverse(self, lat, lon):
        try:
            data = self._get("reverse", {"lat": lat, "lon": lon, "zoom": 18})
        except (requests.RequestException, ValueError) as e:
            logger.warning("Reverse geocoding failed lat=%s lon=%s: %s", lat, lon, e)
            return {"success": False, "error": "Failed to get address information", "reason": UNAVAILABLE}

        if not data or not data.get("display_name"):
            return {"success": False, "error": "No address found for the given coordinates", "reason": NOT_FOUND}

        address = _address(data["display_name"], data.get("address") or {})
        address["coordinates"] = {"lat": float(lat), "lng": float(lon)}
        return {"success": True, "address": address}

    def forward(self, address):
        try:
            data = self._get("search", {"q": address, "limit": 1})
        except (requests.RequestException, ValueError) as e:
            logger.warning("Forward geocoding failed address=%r: %s", address, e)
            return {"success": False, "error": "Failed to get coordinates for the address", "reason": UNAVAILABLE}

        if not data:
            return {"success": False, "error": "No coordinates found for the given address", "reason": NOT_FOUND}

        first = data[0]
        return {
            "success": True,
            "coordinates": {"lat": float(first["lat"]), "lng": float(first["lon"])},
            "address": _address(first.get("display_name", ""), first.get("address") or {}),
        }
