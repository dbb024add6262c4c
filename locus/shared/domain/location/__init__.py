"""Location permission and update coordination."""

from locus.shared.domain.location.models import (
    LOCATION_PERMISSIONS,
    Coordinate,
    CoordinatorState,
    CurrentLocation,
    LocationError,
    PermissionKind,
    PermissionStatus,
    ProviderUnavailableError,
    SubscriptionHandle,
)
from locus.shared.domain.location.permission import evaluate, is_granted, rationale_required
from locus.shared.domain.location.ports import LocationProvider, PermissionGateway
from locus.shared.domain.location.subscription import LocationSubscription
from locus.shared.domain.location.coordinator import LocationCoordinator
from locus.shared.domain.location.address import AddressService

__all__ = [
    "LOCATION_PERMISSIONS",
    "Coordinate",
    "CoordinatorState",
    "CurrentLocation",
    "LocationError",
    "PermissionKind",
    "PermissionStatus",
    "ProviderUnavailableError",
    "SubscriptionHandle",
    "evaluate",
    "is_granted",
    "rationale_required",
    "LocationProvider",
    "PermissionGateway",
    "LocationSubscription",
    "LocationCoordinator",
    "AddressService",
]
