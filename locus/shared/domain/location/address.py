"""Address Service for Locus.

Reverse geocodes each new location fix. Geocoding problems never affect the
location flow: failures are logged and the display keeps the raw coordinate.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Optional

from locus.shared.core import events
from locus.shared.core.event_bus import EventBus, EventPayload
from locus.shared.infrastructure.geocoding.base import GeocodingError, ReverseGeocoder

logger = logging.getLogger(__name__)

# ~1 m at the equator
_CACHE_PRECISION = 5


class AddressService:
    """Resolves addresses for location updates and publishes them."""

    def __init__(self, event_bus: EventBus, geocoder: ReverseGeocoder, cache_size: int = 128):
        self.event_bus = event_bus
        self.geocoder = geocoder
        self.cache_size = cache_size
        self._cache: OrderedDict[tuple[float, float], Optional[str]] = OrderedDict()
        self._latest_sequence = 0

    async def start(self) -> None:
        """Start the service by subscribing to location updates."""
        await self.event_bus.subscribe(events.TOPIC_LOCATION_UPDATED, self.handle_location_updated)

    async def stop(self) -> None:
        await self.event_bus.unsubscribe(events.TOPIC_LOCATION_UPDATED, self.handle_location_updated)
        await self.geocoder.aclose()

    async def handle_location_updated(self, payload: EventPayload) -> None:
        latitude = payload.get("latitude")
        longitude = payload.get("longitude")
        if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
            logger.warning(f"AddressService: malformed location payload: {payload!r}")
            return

        sequence = int(payload.get("sequence") or 0)
        if sequence and sequence < self._latest_sequence:
            logger.debug(f"AddressService: skipping superseded fix #{sequence}")
            return
        self._latest_sequence = max(self._latest_sequence, sequence)

        try:
            address = await self.resolve(float(latitude), float(longitude))
        except GeocodingError as e:
            logger.warning(f"AddressService: reverse geocoding failed for {latitude}, {longitude}: {e}")
            return

        await self.event_bus.publish(
            events.TOPIC_ADDRESS_RESOLVED,
            events.create_address_resolved_event(latitude, longitude, address),
        )

    async def resolve(self, latitude: float, longitude: float) -> Optional[str]:
        """Return the address for a position, or None if there is none.

        Raises:
            GeocodingError: the lookup failed. Failures are not cached.
        """
        key = (round(latitude, _CACHE_PRECISION), round(longitude, _CACHE_PRECISION))
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        address = await self.geocoder.reverse(latitude, longitude)

        if self.cache_size > 0:
            self._cache[key] = address
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return address

