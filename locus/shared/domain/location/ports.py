"""Ports for the OS collaborators.

Implementations: locus/shared/infrastructure/platform/simulated.py
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Set

from .models import Coordinate, PermissionKind

LocationListener = Callable[[Coordinate], None]


class LocationProvider(Protocol):
    """OS location provider.

    ``register`` must return promptly and deliver fixes later, possibly from
    another thread. It raises ProviderUnavailableError when location services
    are off device-wide.
    """

    def register(self, listener: LocationListener) -> Any:
        """Start delivering fixes to ``listener``; returns a provider token."""
        ...

    def unregister(self, token: Any) -> None:
        """Stop deliveries for ``token``. Unknown tokens are ignored."""
        ...


class PermissionGateway(Protocol):
    """Live view of the OS permission state."""

    def granted_permissions(self) -> Set[PermissionKind]:
        ...

    def should_show_rationale(self, kind: PermissionKind) -> bool:
        ...
