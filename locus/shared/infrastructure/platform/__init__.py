"""OS collaborator adapters."""

from locus.shared.infrastructure.platform.simulated import (
    SimulatedLocationProvider,
    SimulatedPermissionGateway,
)

__all__ = [
    "SimulatedLocationProvider",
    "SimulatedPermissionGateway",
]
