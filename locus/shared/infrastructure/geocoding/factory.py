"""Geocoder factory: builds a reverse geocoder from configuration."""

from __future__ import annotations

from enum import Enum

from locus.shared.core.configuration import GeocodingConfig

from .base import NullGeocoder, ReverseGeocoder
from .nominatim import NominatimGeocoder


class GeocoderType(str, Enum):
    """Supported reverse geocoder backends."""
    NOMINATIM = "nominatim"
    NONE = "none"


class GeocoderFactory:
    """Factory for creating reverse geocoder instances."""

    @staticmethod
    def create(config: GeocodingConfig) -> ReverseGeocoder:
        """Create the geocoder named by ``config.provider``.

        Raises:
            ValueError: If the provider is not supported
        """
        try:
            kind = GeocoderType(config.provider.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unsupported geocoder: {config.provider}. "
                f"Supported: {[g.value for g in GeocoderType]}"
            ) from None

        if kind == GeocoderType.NOMINATIM:
            return NominatimGeocoder(
                base_url=config.base_url,
                user_agent=config.user_agent,
                timeout=config.timeout,
                language=config.language,
            )
        return NullGeocoder()
