"""
Geocoding connector.
Resolves free-text addresses to coordinates through the Google Geocoding API.
Falls back to a city table (then a default centre) when the key is missing or the API fails.
"""

import logging
import requests
from django.conf import settings

logger = logging.getLogger("aggrekart.geocoding")

DEFAULT_CENTRE = {"latitude": 20.2961, "longitude": 85.8245, "label": "Bhubaneswar, Odisha, India"}

CITY_COORDINATES = {
    "mumbai":        (19.0760, 72.8777),
    "delhi":         (28.7041, 77.1025),
    "bangalore":     (12.9716, 77.5946),
    "hyderabad":     (17.3850, 78.4867),
    "ahmedabad":     (23.0225, 72.5714),
    "chennai":       (13.0827, 80.2707),
    "kolkata":       (22.5726, 88.3639),
    "pune":          (18.5204, 73.8567),
    "jaipur":        (26.9124, 75.7873),
    "lucknow":       (26.8467, 80.9462),
    "nagpur":        (21.1458, 79.0882),
    "bhopal":        (23.2599, 77.4126),
    "visakhapatnam": (17.6868, 83.2185),
    "patna":         (25.5941, 85.1376),
    "balasore":      (21.4942, 86.9336),
    "bhubaneswar":   (20.2961, 85.8245),
    "cuttack":       (20.4625, 85.8828),
    "rourkela":      (22.2604, 84.8536),
    "berhampur":     (19.3149, 84.7941),
    "kakinada":      (16.9891, 82.2475),
}


class GeocodingConnector:
    """Address → {"latitude", "longitude", "formatted_address", "source"}. Never raises."""

    def __init__(self, api_key=None, base_url=None):
        self.api_key  = settings.GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self.base_url = base_url or settings.GEOCODING_API_URL

    def geocode(self, address: str, city: str = "") -> dict:
        if not self.api_key:
            logger.info("No geocoding key configured, using city fallback for %r", city or address)
            return self.city_fallback(city or address)

        query = ", ".join(part for part in (address, city, "India") if part)
        try:
            resp = requests.get(
                self.base_url,
                params={"address": query, "key": self.api_key, "region": "in"},
                timeout=5,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Geocoding failed for %r: %s", query, exc)
            return self.city_fallback(city or address)

        if data.get("status") != "OK" or not data.get("results"):
            logger.warning("Geocoding returned %s for %r", data.get("status"), query)
            return self.city_fallback(city or address)

        result = data["results"][0]
        location = result["geometry"]["location"]
        return {
            "latitude":          location["lat"],
            "longitude":         location["lng"],
            "formatted_address": result.get("formatted_address", query),
            "source":            "google",
        }

    def city_fallback(self, text: str) -> dict:
        needle = (text or "").lower()
        for city, (lat, lng) in CITY_COORDINATES.items():
            if city in needle:
                return {
                    "latitude":          lat,
                    "longitude":         lng,
                    "formatted_address": f"{city.title()}, India",
                    "source":            "fallback",
                }
        return {
            "latitude":          DEFAULT_CENTRE["latitude"],
            "longitude":         DEFAULT_CENTRE["longitude"],
            "formatted_address": DEFAULT_CENTRE["label"],
            "source":            "default",
        }
