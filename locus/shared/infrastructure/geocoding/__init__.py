"""
Geocoding - reverse geocoder abstraction layer.
"""

from locus.shared.infrastructure.geocoding.base import GeocodingError, NullGeocoder, ReverseGeocoder
from locus.shared.infrastructure.geocoding.factory import GeocoderFactory, GeocoderType
from locus.shared.infrastructure.geocoding.nominatim import NominatimGeocoder

__all__ = [
    "GeocodingError",
    "NullGeocoder",
    "ReverseGeocoder",
    "GeocoderFactory",
    "GeocoderType",
    "NominatimGeocoder",
]
