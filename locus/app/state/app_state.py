"""Application Shell State Management.

Display-side read model. Mirrors the current location, its address, the
latest user-facing message and the coordinator state from EventBus events.
"""

from __future__ import annotations

from typing import Optional

from locus.shared.core import events
from locus.shared.core.event_bus import EventBus, EventPayload
from locus.shared.domain.location.models import Coordinate, CoordinatorState

NO_LOCATION_TEXT = "Location not available"


class AppState:
    """State for the display layer.

    This class subscribes to EventBus events and keeps the values the display
    renders. It never writes location data back; user intent goes out as
    ``user.action`` events.
    """

    def __init__(self, event_bus: EventBus) -> None:
        """Initialize application state.

        Args:
            event_bus: The shared event bus for cross-cutting concerns
        """
        self.bus = event_bus

        # Location
        self.location: Optional[Coordinate] = None
        self.location_sequence = 0
        self.address: Optional[str] = None

        # Status & messages
        self.coordinator_state = CoordinatorState.IDLE
        self.message: Optional[str] = None
        self.is_ready = False

        self._started = False

    async def initialize(self) -> None:
        """Bind to EventBus events. Safe to call more than once."""
        if self._started:
            return

        await self.bus.subscribe(events.TOPIC_LOCATION_UPDATED, self._handle_location_updated)
        await self.bus.subscribe(events.TOPIC_ADDRESS_RESOLVED, self._handle_address_resolved)
        await self.bus.subscribe(events.TOPIC_PERMISSION_DENIED, self._handle_message)
        await self.bus.subscribe(events.TOPIC_LOCATION_UNAVAILABLE, self._handle_message)
        await self.bus.subscribe(events.TOPIC_COORDINATOR_STATE, self._handle_coordinator_state)

        self._started = True
        self.is_ready = True

    # --- Public Actions ---

    async def publish(self, topic: str, payload: EventPayload) -> None:
        await self.bus.publish(topic, payload)

    async def raise_user_action(self, action: str, payload: Optional[EventPayload] = None) -> None:
        """Push user intent into the event bus."""
        await self.publish(events.TOPIC_USER_ACTION, events.create_user_action_event(action, **(payload or {})))

    async def request_location(self) -> None:
        """The "Get Location" button."""
        await self.raise_user_action(events.ACTION_REQUEST_LOCATION)

    def display_text(self) -> str:
        """Text the display shows for the current location."""
        if self.location is None:
            return NO_LOCATION_TEXT
        text = f"Address: {self.location.latitude} {self.location.longitude}"
        if self.address:
            text += f"\n{self.address}"
        return text

    # --- Event Handlers ---

    async def _handle_location_updated(self, payload: EventPayload) -> None:
        sequence = int(payload.get("sequence") or 0)
        if sequence and sequence <= self.location_sequence:
            return
        coordinate = Coordinate(latitude=payload["latitude"], longitude=payload["longitude"])
        if coordinate != self.location:
            self.address = None
        self.location = coordinate
        self.location_sequence = sequence or self.location_sequence + 1
        self.message = None

    async def _handle_address_resolved(self, payload: EventPayload) -> None:
        """Keep the address only if it belongs to the displayed coordinate."""
        if self.location is None:
            return
        if (payload.get("latitude"), payload.get("longitude")) != (self.location.latitude, self.location.longitude):
            return
        address = payload.get("address")
        self.address = str(address) if address else None

    async def _handle_message(self, payload: EventPayload) -> None:
        message = payload.get("message")
        if message:
            self.message = str(message)

    async def _handle_coordinator_state(self, payload: EventPayload) -> None:
        state = payload.get("state")
        try:
            self.coordinator_state = CoordinatorState(state)
        except ValueError:
            return
        if self.coordinator_state is CoordinatorState.SUBSCRIBED:
            self.message = None
