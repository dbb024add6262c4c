"""Reverse geocoding port and shared errors."""

from __future__ import annotations

from typing import Optional, Protocol


class GeocodingError(Exception):
    """Raised when a geocoding backend cannot be reached or misbehaves."""


class ReverseGeocoder(Protocol):
    """Port for reverse geocoding services.

    Implementations: nominatim.py (OpenStreetMap), NullGeocoder
    """

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """Resolve coordinates to a human readable address.

        Returns:
            The address, or None if nothing is known at that position.

        Raises:
            GeocodingError: transport or service failure.
        """
        ...

    async def aclose(self) -> None:
        ...


class NullGeocoder:
    """Geocoder that never knows an address (geocoding disabled)."""

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        return None

    async def aclose(self) -> None:
        return None
