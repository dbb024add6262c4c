from collections import defaultdict
from typing import Any, Dict, List

import pytest
import pytest_asyncio

from locus.app.state import Store
from locus.shared.core import events
from locus.shared.core.event_bus import EventBus
from locus.shared.domain.location import LocationCoordinator, LocationSubscription
from locus.shared.infrastructure.platform import SimulatedLocationProvider, SimulatedPermissionGateway


class EventRecorder:
    """Collects payloads published on selected topics."""

    def __init__(self) -> None:
        self.events: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    async def attach(self, bus: EventBus, *topics: str) -> "EventRecorder":
        for topic in topics:
            async def _record(payload, _topic=topic):
                self.events[_topic].append(payload)

            await bus.subscribe(topic, _record)
        return self

    def __getitem__(self, topic: str) -> List[Dict[str, Any]]:
        return self.events[topic]


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def provider() -> SimulatedLocationProvider:
    # No ticking: fixes are delivered with provider.emit()
    return SimulatedLocationProvider(interval=None)


@pytest.fixture
def gateway() -> SimulatedPermissionGateway:
    return SimulatedPermissionGateway(rationale=True, grant_on_request=None)


@pytest.fixture
def subscription(provider: SimulatedLocationProvider) -> LocationSubscription:
    return LocationSubscription(provider)


@pytest_asyncio.fixture
async def recorder(bus: EventBus) -> EventRecorder:
    return await EventRecorder().attach(
        bus,
        events.TOPIC_PERMISSION_REQUESTED,
        events.TOPIC_PERMISSION_DENIED,
        events.TOPIC_LOCATION_UPDATED,
        events.TOPIC_LOCATION_UNAVAILABLE,
        events.TOPIC_ADDRESS_RESOLVED,
        events.TOPIC_COORDINATOR_STATE,
    )


@pytest_asyncio.fixture
async def coordinator(bus, gateway, subscription, recorder):
    coordinator = LocationCoordinator(bus, gateway, subscription)
    await coordinator.start()
    yield coordinator
    await coordinator.close()
    await bus.wait_until_idle(timeout=2.0)


@pytest.fixture(autouse=True)
def _reset_store():
    Store.reset()
    yield
    Store.reset()
