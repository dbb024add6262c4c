"""Canonical event definitions for Locus."""

from __future__ import annotations

import time
from typing import Any, Iterable, Mapping, Optional

from .event_bus import EventPayload

# Shell topics
TOPIC_USER_ACTION = "user.action"

# Permission flow
TOPIC_PERMISSION_REQUESTED = "permission.requested"  # Payload: {"permissions": [...]}
TOPIC_PERMISSION_RESULT = "permission.result"  # Payload: {"result": {kind: bool}}
TOPIC_PERMISSION_DENIED = "permission.denied"

# Location flow
TOPIC_LOCATION_UPDATED = "location.updated"
TOPIC_LOCATION_UNAVAILABLE = "location.unavailable"
TOPIC_ADDRESS_RESOLVED = "address.resolved"

# Coordinator lifecycle
TOPIC_COORDINATOR_STATE = "coordinator.state"

# User actions
ACTION_REQUEST_LOCATION = "request_location"


def create_permission_requested_event(permissions: Iterable[str]) -> EventPayload:
    """Create a permission request intent naming the permissions to ask for."""
    return {
        "permissions": list(permissions),
    }


def create_permission_result_event(result: Mapping[str, bool]) -> EventPayload:
    """Create a permission result event (answer from the permission collaborator)."""
    return {
        "result": dict(result),
    }


def create_permission_denied_event(message: str, with_rationale: bool) -> EventPayload:
    return {
        "message": message,
        "with_rationale": with_rationale,
    }


def create_location_updated_event(latitude: float, longitude: float, sequence: int) -> EventPayload:
    """Create a location updated event.

    Args:
        latitude: Latitude of the new fix
        longitude: Longitude of the new fix
        sequence: Monotonic update counter of the current-location slot
    """
    return {
        "latitude": latitude,
        "longitude": longitude,
        "sequence": sequence,
        "ts": time.time(),
    }


def create_location_unavailable_event(message: str, reason: Optional[str] = None) -> EventPayload:
    return {
        "message": message,
        "reason": reason,
    }


def create_address_resolved_event(
    latitude: float,
    longitude: float,
    address: Optional[str],
) -> EventPayload:
    """Create an address resolved event. ``address`` is None when not found."""
    return {
        "latitude": latitude,
        "longitude": longitude,
        "address": address,
    }


def create_coordinator_state_event(state: str, previous: str) -> EventPayload:
    return {
        "state": state,
        "previous": previous,
    }


def create_user_action_event(action: str, **extra: Any) -> EventPayload:
    """Create a user action event."""
    return {"action": action, **extra}


__all__ = [
    "TOPIC_USER_ACTION",
    "TOPIC_PERMISSION_REQUESTED",
    "TOPIC_PERMISSION_RESULT",
    "TOPIC_PERMISSION_DENIED",
    "TOPIC_LOCATION_UPDATED",
    "TOPIC_LOCATION_UNAVAILABLE",
    "TOPIC_ADDRESS_RESOLVED",
    "TOPIC_COORDINATOR_STATE",
    "ACTION_REQUEST_LOCATION",
    "create_permission_requested_event",
    "create_permission_result_event",
    "create_permission_denied_event",
    "create_location_updated_event",
    "create_location_unavailable_event",
    "create_address_resolved_event",
    "create_coordinator_state_event",
    "create_user_action_event",
]
