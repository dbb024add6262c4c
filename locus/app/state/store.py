"""Global State Store - Service Locator Pattern.

Provides centralized access to display state from anywhere in the app.
"""

from __future__ import annotations

from typing import Optional

from .app_state import AppState
from locus.shared.core.event_bus import EventBus


class Store:
    """Global state store for the application.

    Usage:
        # During app initialization
        Store.initialize(event_bus)

        # Anywhere else
        store = Store.get()
        store.app.display_text()
    """

    _instance: Optional['Store'] = None

    def __init__(self, event_bus: EventBus) -> None:
        """Do not call directly. Use Store.initialize() instead."""
        self.app = AppState(event_bus)

    @classmethod
    def initialize(cls, event_bus: EventBus) -> 'Store':
        """Initialize the global store instance.

        Raises:
            RuntimeError: If store is already initialized
        """
        if cls._instance is not None:
            raise RuntimeError("Store already initialized!")

        cls._instance = cls(event_bus)
        return cls._instance

    @classmethod
    def get(cls) -> 'Store':
        """Get the global store instance.

        Raises:
            RuntimeError: If store has not been initialized
        """
        if cls._instance is None:
            raise RuntimeError("Store not initialized! Call Store.initialize() first.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the global instance (tests and shutdown)."""
        cls._instance = None
