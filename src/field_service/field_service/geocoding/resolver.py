from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        """Postal address for a coordinate pair, or None when unknown."""

        raise NotImplementedError


def coordinates_label(latitude: float, longitude: float) -> str:
    return f"{latitude}, {longitude}"


class LocationResolver:
    """Turns coordinates into an address string.

    Geocoding is best effort: without a geocoder, or when it fails, the
    caller-supplied address (or else the coordinates themselves) is used.
    """

    def __init__(self, geocoder: Optional[Geocoder] = None):
        self._geocoder = geocoder

    def resolve(self, latitude: float, longitude: float, fallback_address: Optional[str] = None) -> str:
        fallback = fallback_address or coordinates_label(latitude, longitude)
        if self._geocoder is None:
            return fallback

        try:
            address = self._geocoder.reverse_geocode(latitude, longitude)
        except Exception:
            logger.warning("Reverse geocoding failed for %s, %s", latitude, longitude, exc_info=True)
            return fallback

        return address or coordinates_label(latitude, longitude)
