"""
Shared Core Module
==================

Event system, configuration, and service registry.
"""

# Event System
from .event_bus import EventBus, EventPayload
from . import events

# Service Registry
from .service_registry import (
    get_coordinator,
    set_coordinator,
    register_cleanup_handler,
    run_cleanup_handlers,
    unregister_cleanup_handler,
)

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    get_config_manager,
    get_config,
    ValidationLevel,
)

__all__ = [
    # Event System
    "EventBus",
    "EventPayload",
    "events",
    # Service Registry
    "get_coordinator",
    "set_coordinator",
    "register_cleanup_handler",
    "run_cleanup_handlers",
    "unregister_cleanup_handler",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "get_config_manager",
    "get_config",
    "ValidationLevel",
]
