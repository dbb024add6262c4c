import asyncio

import pytest

from locus.shared.core import events
from locus.shared.domain.location import Coordinate, PermissionKind, ProviderUnavailableError
from locus.shared.infrastructure.platform import SimulatedLocationProvider, SimulatedPermissionGateway

FINE = PermissionKind.FINE_LOCATION
COARSE = PermissionKind.COARSE_LOCATION


def test_disabled_provider_refuses_registration():
    provider = SimulatedLocationProvider(interval=None, enabled=False)

    with pytest.raises(ProviderUnavailableError) as exc_info:
        provider.register(lambda _fix: None)

    assert exc_info.value.reason == "disabled"
    assert provider.registrations == 0


def test_route_is_replayed_in_a_cycle():
    route = [Coordinate(latitude=1.0, longitude=1.0), Coordinate(latitude=2.0, longitude=2.0)]
    provider = SimulatedLocationProvider(interval=None, route=route)

    assert [provider.next_fix() for _ in range(3)] == [route[0], route[1], route[0]]


def test_random_walk_stays_in_range():
    provider = SimulatedLocationProvider(
        start=Coordinate(latitude=89.99, longitude=179.99),
        interval=None,
        step_degrees=0.5,
    )

    for _ in range(50):
        fix = provider.next_fix()
        assert -90.0 <= fix.latitude <= 90.0
        assert -180.0 <= fix.longitude <= 180.0


@pytest.mark.asyncio
async def test_ticking_provider_delivers_until_unregistered():
    provider = SimulatedLocationProvider(interval=0.01)
    received = []

    token = provider.register(received.append)
    await asyncio.sleep(0.05)
    provider.unregister(token)
    count = len(received)
    await asyncio.sleep(0.03)

    assert count >= 1
    assert len(received) == count
    await provider.aclose()


@pytest.mark.asyncio
async def test_gateway_answers_requests_on_the_bus(bus, recorder):
    results = []

    async def _collect(payload):
        results.append(payload)

    await bus.subscribe(events.TOPIC_PERMISSION_RESULT, _collect)
    gateway = SimulatedPermissionGateway(grant_on_request=True)
    await gateway.attach(bus)

    await bus.publish(
        events.TOPIC_PERMISSION_REQUESTED,
        events.create_permission_requested_event(["fine_location", "coarse_location"]),
    )
    await bus.wait_until_idle(timeout=2.0)

    assert results == [{"result": {"fine_location": True, "coarse_location": True}}]
    assert gateway.granted_permissions() == {FINE, COARSE}
    assert gateway.should_show_rationale(FINE) is False


@pytest.mark.asyncio
async def test_pending_dialog_waits_for_answer(bus):
    results = []

    async def _collect(payload):
        results.append(payload)

    await bus.subscribe(events.TOPIC_PERMISSION_RESULT, _collect)
    gateway = SimulatedPermissionGateway(grant_on_request=None)
    await gateway.attach(bus)

    await gateway.handle_permission_requested({"permissions": ["fine_location", "coarse_location"]})
    await bus.wait_until_idle(timeout=2.0)
    assert gateway.requests == [["fine_location", "coarse_location"]]
    assert results == []

    await gateway.answer(False)
    await bus.wait_until_idle(timeout=2.0)
    assert results == [{"result": {"fine_location": False, "coarse_location": False}}]
    assert gateway.should_show_rationale(COARSE) is True


@pytest.mark.asyncio
async def test_answer_requires_attached_bus():
    with pytest.raises(RuntimeError):
        await SimulatedPermissionGateway().answer(True)
