"""Service registry for cross-module access to initialized services."""

from __future__ import annotations

import atexit
import logging
from typing import Optional, TYPE_CHECKING, Callable, List

if TYPE_CHECKING:
    from locus.shared.domain.location.coordinator import LocationCoordinator

logger = logging.getLogger(__name__)

# Global reference to the running coordinator
_coordinator: Optional["LocationCoordinator"] = None

# Global cleanup management
_cleanup_registered = False
_cleanup_handlers: List[Callable[[], None]] = []


def set_coordinator(coordinator: Optional["LocationCoordinator"]) -> None:
    """Set the global location coordinator instance."""
    global _coordinator
    _coordinator = coordinator


def get_coordinator() -> Optional["LocationCoordinator"]:
    """Get the global location coordinator instance."""
    return _coordinator


def register_cleanup_handler(handler: Callable[[], None]) -> None:
    """Register a cleanup handler to be called on application exit."""
    global _cleanup_registered
    _cleanup_handlers.append(handler)
    if not _cleanup_registered:
        atexit.register(run_cleanup_handlers)
        _cleanup_registered = True
        logger.debug("Registered atexit cleanup handler")


def unregister_cleanup_handler(handler: Callable[[], None]) -> None:
    """Forget a handler whose resources were already released."""
    if handler in _cleanup_handlers:
        _cleanup_handlers.remove(handler)


def run_cleanup_handlers() -> None:
    """Run and forget all registered handlers, most recent first."""
    logger.info("Running application cleanup...")
    while _cleanup_handlers:
        handler = _cleanup_handlers.pop()
        try:
            handler()
        except Exception as e:
            logger.warning(f"Error in cleanup handler: {e}")
    logger.info("Application cleanup completed")
