"""Locus - location permission and update coordination."""

from .shared.core.event_bus import EventBus
from .shared.domain.location import Coordinate, LocationCoordinator, LocationSubscription

__version__ = "0.3.0"

__all__ = ["EventBus", "Coordinate", "LocationCoordinator", "LocationSubscription"]
