"""
Locus Shared Kernel
===================

Architecture:
- core: EventBus, configuration, service registry
- infrastructure: Technical adapters (geocoding, platform collaborators)
- domain: Business logic (permission evaluation, subscription, coordination)
"""

__version__ = "0.3.0"

__all__ = []
