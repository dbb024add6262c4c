"""Single active location-update registration."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from .models import Coordinate, SubscriptionHandle
from .ports import LocationListener, LocationProvider

logger = logging.getLogger(__name__)


class LocationSubscription:
    """Owns at most one live provider registration.

    ``start`` always replaces the previous registration, so two calls leave
    exactly one registration bound to the latest callback. Permission is
    checked by the caller.
    """

    def __init__(self, provider: LocationProvider):
        self._provider = provider
        # Provider callbacks may arrive on other threads
        self._lock = threading.RLock()
        self._active: Optional[SubscriptionHandle] = None
        self._token: Any = None

    @property
    def active_handle(self) -> Optional[SubscriptionHandle]:
        with self._lock:
            return self._active

    def is_active(self, handle: SubscriptionHandle) -> bool:
        with self._lock:
            return self._active is not None and self._active == handle

    def start(self, on_update: Callable[[Coordinate], None]) -> SubscriptionHandle:
        """Register for updates, replacing any active registration.

        Raises:
            ProviderUnavailableError: location services are unavailable; no
                registration is left active.
        """
        with self._lock:
            previous = self._active
            if previous is not None:
                self.stop(previous)

            handle = SubscriptionHandle()
            # Active before register() so fixes delivered synchronously are kept
            self._active = handle
            try:
                self._token = self._provider.register(self._route(handle, on_update))
            except BaseException:
                self._active = None
                self._token = None
                raise

        if previous is not None:
            logger.info(f"LocationSubscription: replaced {previous.handle_id} with {handle.handle_id}")
        else:
            logger.info(f"LocationSubscription: started {handle.handle_id}")
        return handle

    def stop(self, handle: SubscriptionHandle) -> None:
        """Stop ``handle``. Unknown or already stopped handles are a no-op."""
        with self._lock:
            if self._active is None or self._active != handle:
                logger.debug(f"LocationSubscription: stop ignored for inactive handle {handle.handle_id}")
                return
            token = self._token
            self._active = None
            self._token = None
            self._provider.unregister(token)

        logger.info(f"LocationSubscription: stopped {handle.handle_id}")

    def _route(self, handle: SubscriptionHandle, on_update: Callable[[Coordinate], None]) -> LocationListener:
        def _deliver(coordinate: Coordinate) -> None:
            # A stopped registration must never reach a newer callback
            with self._lock:
                if not self.is_active(handle):
                    logger.debug(f"LocationSubscription: dropped fix from stopped handle {handle.handle_id}")
                    return
                on_update(coordinate)

        return _deliver
