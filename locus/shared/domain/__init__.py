"""
Shared Domain Module
====================

Business logic for location permission, subscription and address resolution.
"""

from locus.shared.domain.location import AddressService, LocationCoordinator, LocationSubscription

__all__ = [
    "AddressService",
    "LocationCoordinator",
    "LocationSubscription",
]
