"""
Address to coordinates resolution.

``GoogleGeocoder`` wraps the Google Geocoding API.  Any failure
(network error, unexpected HTTP status, an address with no results or
a malformed payload) raises ``GeocodingError`` so callers never
persist a place without a resolved location.
"""

import logging
from typing import Protocol

import requests

from .config import settings
from .errors import GeocodingError
from ..schemas.place import Location


logger = logging.getLogger(__name__)


class GeoResolver(Protocol):
    """Interface for converting a free-text address into coordinates."""

    def resolve(self, address: str) -> Location:
        ...


class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding JSON API."""

    def __init__(self, api_key: str, url: str, timeout: float = 5.0) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    def resolve(self, address: str) -> Location:
        if not self.api_key:
            logger.error("Geocoding requested but GOOGLE_API_KEY is not configured")
            raise GeocodingError()
        try:
            resp = requests.get(
                self.url,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Geocoding request for %r failed: %s", address, exc)
            raise GeocodingError() from exc

        if resp.status_code != 200:
            logger.warning("Geocoding API returned HTTP %s", resp.status_code)
            raise GeocodingError()

        try:
            data = resp.json()
        except ValueError as exc:
            raise GeocodingError() from exc

        if not isinstance(data, dict):
            logger.warning("Malformed geocoding payload for %r", address)
            raise GeocodingError()
        if data.get("status") != "OK":
            logger.info("No location for %r (status %s)", address, data.get("status"))
            raise GeocodingError()

        try:
            coordinates = data["results"][0]["geometry"]["location"]
            return Location(lat=float(coordinates["lat"]), lng=float(coordinates["lng"]))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Malformed geocoding payload for %r", address)
            raise GeocodingError() from exc


def get_geocoder() -> GeoResolver:
    """FastAPI dependency returning the configured resolver."""
    return GoogleGeocoder(
        api_key=settings.google_api_key,
        url=settings.geocoding_url,
        timeout=settings.geocoding_timeout,
    )
