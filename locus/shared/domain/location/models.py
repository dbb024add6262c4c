"""Location domain models and errors."""

from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class PermissionKind(str, Enum):
    """OS permissions the location core cares about."""
    FINE_LOCATION = "fine_location"
    COARSE_LOCATION = "coarse_location"


# Every location request names both kinds
LOCATION_PERMISSIONS: tuple[PermissionKind, ...] = (
    PermissionKind.FINE_LOCATION,
    PermissionKind.COARSE_LOCATION,
)


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED_WITH_RATIONALE = "denied_with_rationale"
    DENIED_HARD = "denied_hard"


class CoordinatorState(str, Enum):
    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    SUBSCRIBED = "subscribed"


class Coordinate(BaseModel):
    """A single location fix."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def __str__(self) -> str:
        return f"{self.latitude} {self.longitude}"


class SubscriptionHandle(BaseModel):
    """Opaque token for one live provider registration."""
    model_config = ConfigDict(frozen=True)

    handle_id: str = Field(default_factory=lambda: uuid4().hex)


class CurrentLocation:
    """Owned slot for the most recent coordinate.

    Written only by the coordinator's location sink; anyone may read it.
    ``sequence`` counts accepted writes so readers can tell updates apart
    even when the same coordinate is delivered twice.
    """

    def __init__(self) -> None:
        self._value: Optional[Coordinate] = None
        self._sequence = 0

    @property
    def current(self) -> Optional[Coordinate]:
        return self._value

    @property
    def sequence(self) -> int:
        return self._sequence

    def set(self, coordinate: Coordinate) -> int:
        self._value = coordinate
        self._sequence += 1
        return self._sequence


class LocationError(Exception):
    """Base class for location core errors."""


class ProviderUnavailableError(LocationError):
    """The OS location provider cannot deliver updates right now."""

    def __init__(self, message: str = "Location provider unavailable", *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
