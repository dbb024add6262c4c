import pytest

from locus.shared.core import events
from locus.shared.domain.location import AddressService
from locus.shared.infrastructure.geocoding import GeocodingError


class FakeGeocoder:
    def __init__(self, answers=None, error: Exception | None = None):
        self.answers = answers or {}
        self.error = error
        self.calls = []
        self.closed = False

    async def reverse(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.answers.get((latitude, longitude))

    async def aclose(self):
        self.closed = True


async def _publish_fix(bus, latitude, longitude, sequence):
    await bus.publish(
        events.TOPIC_LOCATION_UPDATED,
        events.create_location_updated_event(latitude, longitude, sequence),
    )
    await bus.wait_until_idle(timeout=2.0)


@pytest.mark.asyncio
async def test_publishes_resolved_address(bus, recorder):
    geocoder = FakeGeocoder({(10.0, 20.0): "1 Main Street, Springfield"})
    service = AddressService(bus, geocoder)
    await service.start()

    await _publish_fix(bus, 10.0, 20.0, 1)

    assert recorder[events.TOPIC_ADDRESS_RESOLVED] == [
        {"latitude": 10.0, "longitude": 20.0, "address": "1 Main Street, Springfield"}
    ]


@pytest.mark.asyncio
async def test_not_found_is_published_as_none(bus, recorder):
    service = AddressService(bus, FakeGeocoder())
    await service.start()

    await _publish_fix(bus, 0.0, 0.0, 1)

    assert recorder[events.TOPIC_ADDRESS_RESOLVED][0]["address"] is None


@pytest.mark.asyncio
async def test_geocoding_failure_is_not_fatal(bus, recorder):
    geocoder = FakeGeocoder(error=GeocodingError("offline"))
    service = AddressService(bus, geocoder)
    await service.start()

    await _publish_fix(bus, 10.0, 20.0, 1)

    assert geocoder.calls == [(10.0, 20.0)]
    assert recorder[events.TOPIC_ADDRESS_RESOLVED] == []


@pytest.mark.asyncio
async def test_repeated_positions_use_cache(bus, recorder):
    geocoder = FakeGeocoder({(10.0, 20.0): "Somewhere"})
    service = AddressService(bus, geocoder, cache_size=4)
    await service.start()

    await _publish_fix(bus, 10.0, 20.0, 1)
    await _publish_fix(bus, 10.0, 20.0, 2)

    assert geocoder.calls == [(10.0, 20.0)]
    assert len(recorder[events.TOPIC_ADDRESS_RESOLVED]) == 2


@pytest.mark.asyncio
async def test_cache_is_bounded():
    geocoder = FakeGeocoder()
    service = AddressService(event_bus=None, geocoder=geocoder, cache_size=1)

    await service.resolve(1.0, 1.0)
    await service.resolve(2.0, 2.0)
    await service.resolve(1.0, 1.0)

    assert geocoder.calls == [(1.0, 1.0), (2.0, 2.0), (1.0, 1.0)]


@pytest.mark.asyncio
async def test_superseded_fix_is_skipped(bus, recorder):
    geocoder = FakeGeocoder()
    service = AddressService(bus, geocoder)
    await service.start()

    await _publish_fix(bus, 2.0, 2.0, 2)
    await _publish_fix(bus, 1.0, 1.0, 1)

    assert geocoder.calls == [(2.0, 2.0)]


@pytest.mark.asyncio
async def test_stop_unsubscribes_and_closes_geocoder(bus, recorder):
    geocoder = FakeGeocoder()
    service = AddressService(bus, geocoder)
    await service.start()
    await service.stop()

    await _publish_fix(bus, 1.0, 1.0, 1)

    assert geocoder.closed is True
    assert geocoder.calls == []


@pytest.mark.asyncio
async def test_resolve_raises_and_does_not_cache_failures():
    geocoder = FakeGeocoder({(1.0, 1.0): "Back online"}, error=GeocodingError("offline"))
    service = AddressService(event_bus=None, geocoder=geocoder)

    with pytest.raises(GeocodingError):
        await service.resolve(1.0, 1.0)

    geocoder.error = None
    assert await service.resolve(1.0, 1.0) == "Back online"
    assert geocoder.calls == [(1.0, 1.0), (1.0, 1.0)]
