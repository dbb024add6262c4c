"""
In-process stand-ins for the OS location provider and permission dialog.

Used by the console application and by tests. The provider either ticks on
its own (``interval``) or only delivers what ``emit`` pushes.
"""

from __future__ import annotations

import asyncio
import logging
from itertools import cycle
from random import uniform
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set
from uuid import uuid4

from locus.shared.core import events
from locus.shared.core.event_bus import EventBus, EventPayload
from locus.shared.domain.location.models import (
    LOCATION_PERMISSIONS,
    Coordinate,
    PermissionKind,
    ProviderUnavailableError,
)
from locus.shared.domain.location.ports import LocationListener

logger = logging.getLogger(__name__)


class SimulatedLocationProvider:
    """Location provider producing a random walk or a fixed route."""

    def __init__(
        self,
        start: Optional[Coordinate] = None,
        interval: Optional[float] = 1.0,
        step_degrees: float = 0.0001,
        enabled: bool = True,
        route: Optional[Sequence[Coordinate]] = None,
    ):
        self.interval = interval
        self.step_degrees = step_degrees
        self.enabled = enabled
        self._position = start or Coordinate(latitude=0.0, longitude=0.0)
        self._route: Optional[Iterator[Coordinate]] = cycle(route) if route else None
        self._listeners: Dict[str, LocationListener] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._running: Set[asyncio.Task] = set()
        self.register_calls = 0

    @property
    def registrations(self) -> int:
        return len(self._listeners)

    def register(self, listener: LocationListener) -> str:
        self.register_calls += 1
        if not self.enabled:
            raise ProviderUnavailableError("Location services are disabled", reason="disabled")

        token = uuid4().hex
        self._listeners[token] = listener
        if self.interval:
            task = asyncio.get_running_loop().create_task(self._feed(token))
            self._tasks[token] = task
            self._running.add(task)
            task.add_done_callback(self._running.discard)
        logger.debug(f"SimulatedLocationProvider: registered {token}")
        return token

    def unregister(self, token: str) -> None:
        self._listeners.pop(token, None)
        task = self._tasks.pop(token, None)
        if task is not None:
            task.cancel()
        logger.debug(f"SimulatedLocationProvider: unregistered {token}")

    def emit(self, coordinate: Coordinate) -> None:
        """Deliver one fix to every registered listener."""
        self._position = coordinate
        for listener in list(self._listeners.values()):
            listener(coordinate)

    def next_fix(self) -> Coordinate:
        if self._route is not None:
            self._position = next(self._route)
            return self._position

        step = self.step_degrees
        latitude = max(-90.0, min(90.0, self._position.latitude + uniform(-step, step)))
        longitude = self._position.longitude + uniform(-step, step)
        # Wrap into [-180, 180]
        longitude = ((longitude + 180.0) % 360.0) - 180.0
        self._position = Coordinate(latitude=latitude, longitude=longitude)
        return self._position

    async def _feed(self, token: str) -> None:
        assert self.interval is not None
        while token in self._listeners:
            fix = self.next_fix()
            listener = self._listeners.get(token)
            if listener is None:
                break
            listener(fix)
            await asyncio.sleep(self.interval)

    async def aclose(self) -> None:
        for token in list(self._listeners):
            self.unregister(token)
        tasks = list(self._running)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class SimulatedPermissionGateway:
    """Permission state plus a scripted permission dialog.

    ``grant_on_request`` decides how the dialog answers: True grants, False
    denies, None leaves the request pending until ``answer`` is called.
    """

    def __init__(
        self,
        granted: Iterable[PermissionKind] = (),
        rationale: bool = True,
        grant_on_request: Optional[bool] = None,
    ):
        self._granted: Set[PermissionKind] = set(granted)
        self.rationale = rationale
        self.grant_on_request = grant_on_request
        self.requests: List[List[str]] = []
        self._bus: Optional[EventBus] = None

    def granted_permissions(self) -> Set[PermissionKind]:
        return set(self._granted)

    def should_show_rationale(self, kind: PermissionKind) -> bool:
        return self.rationale and kind not in self._granted

    def grant(self, *kinds: PermissionKind) -> None:
        self._granted.update(kinds or LOCATION_PERMISSIONS)

    def revoke(self, *kinds: PermissionKind) -> None:
        self._granted.difference_update(kinds or LOCATION_PERMISSIONS)

    async def attach(self, event_bus: EventBus) -> None:
        """Start answering permission requests published on the bus."""
        self._bus = event_bus
        await event_bus.subscribe(events.TOPIC_PERMISSION_REQUESTED, self.handle_permission_requested)

    async def detach(self) -> None:
        if self._bus is not None:
            await self._bus.unsubscribe(events.TOPIC_PERMISSION_REQUESTED, self.handle_permission_requested)
            self._bus = None

    async def handle_permission_requested(self, payload: EventPayload) -> None:
        permissions = [str(p) for p in payload.get("permissions", [])]
        self.requests.append(permissions)
        logger.info(f"SimulatedPermissionGateway: dialog shown for {permissions}")
        if self.grant_on_request is None:
            return
        await self.answer(self.grant_on_request, permissions)

    async def answer(self, granted: bool, permissions: Optional[Iterable[str]] = None) -> None:
        """Close the dialog with a grant or a denial for ``permissions``."""
        if self._bus is None:
            raise RuntimeError("SimulatedPermissionGateway is not attached to an event bus")

        kinds = [PermissionKind(p) for p in permissions] if permissions else list(LOCATION_PERMISSIONS)
        if granted:
            self.grant(*kinds)
        else:
            self.revoke(*kinds)

        result = {kind.value: granted for kind in kinds}
        await self._bus.publish(events.TOPIC_PERMISSION_RESULT, events.create_permission_result_event(result))
