"""Locus - console application entry point.

Wires the event bus, display state, simulated platform, subscription,
coordinator and address service, presses "Get Location" once, and renders
the display state to the terminal until the run duration elapses.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from locus.app.state import Store
from locus.shared.core.configuration import SystemConfig, get_config_manager, LoggingConfig
from locus.shared.core.event_bus import EventBus
from locus.shared.core.service_registry import (
    register_cleanup_handler,
    set_coordinator,
    unregister_cleanup_handler,
)
from locus.shared.domain.location import (
    LOCATION_PERMISSIONS,
    AddressService,
    Coordinate,
    LocationCoordinator,
    LocationSubscription,
)
from locus.shared.infrastructure.geocoding import GeocoderFactory, NullGeocoder
from locus.shared.infrastructure.platform import SimulatedLocationProvider, SimulatedPermissionGateway

logger = logging.getLogger(__name__)

RENDER_INTERVAL_SEC = 0.25


def configure_logging(config: LoggingConfig, project_root: Path) -> Path:
    """Configure root logging.

    File handler logs at the configured level to <log_dir>/locus.log,
    console handler only shows the configured console level and above.
    """
    logs_dir = Path(config.log_dir)
    if not logs_dir.is_absolute():
        logs_dir = project_root / logs_dir
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = logs_dir / "locus.log"

    file_log_level = logging.getLevelName(config.level.upper())
    if not isinstance(file_log_level, int):
        file_log_level = logging.DEBUG
    console_log_level = logging.getLevelName(config.console_level.upper())
    if not isinstance(console_log_level, int):
        console_log_level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_log_level, console_log_level))
    root_logger.handlers.clear()

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8',
    )
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_log_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info(f"Logging configured: file={log_file_path}, console={logging.getLevelName(console_log_level)}+")
    return log_file_path


def _release_subscription(subscription: LocationSubscription) -> None:
    handle = subscription.active_handle
    if handle is not None:
        subscription.stop(handle)


@dataclass
class Runtime:
    """Services started by ``init_services``."""
    store: Store
    provider: SimulatedLocationProvider
    permissions: SimulatedPermissionGateway
    coordinator: LocationCoordinator
    address_service: AddressService
    release: Optional[Callable[[], None]] = field(default=None, repr=False)

    async def shutdown(self) -> None:
        await self.coordinator.close()
        await self.address_service.stop()
        await self.permissions.detach()
        await self.provider.aclose()
        if self.release is not None:
            unregister_cleanup_handler(self.release)
            self.release = None
        set_coordinator(None)
        logger.info("Runtime shut down")


async def init_services(config: SystemConfig, store: Store, geocode: bool = True) -> Runtime:
    """Initialize all services against the shared event bus."""
    bus = store.app.bus
    await store.app.initialize()
    logger.info("AppState initialized")

    sim = config.simulation
    provider = SimulatedLocationProvider(
        start=Coordinate(latitude=sim.start_latitude, longitude=sim.start_longitude),
        interval=config.location.update_interval_sec,
        step_degrees=sim.step_degrees,
        enabled=sim.provider_enabled,
    )
    permissions = SimulatedPermissionGateway(
        granted=LOCATION_PERMISSIONS if sim.initially_granted else (),
        rationale=sim.rationale_on_denial,
        grant_on_request=sim.grant_on_request,
    )
    await permissions.attach(bus)

    subscription = LocationSubscription(provider)
    coordinator = LocationCoordinator(bus, permissions, subscription)
    await coordinator.start()
    set_coordinator(coordinator)
    release = partial(_release_subscription, subscription)
    register_cleanup_handler(release)

    try:
        geocoder = GeocoderFactory.create(config.geocoding) if geocode else NullGeocoder()
    except ValueError as e:
        logger.warning(f"Geocoding disabled: {e}")
        geocoder = NullGeocoder()
    address_service = AddressService(bus, geocoder, cache_size=config.geocoding.cache_size)
    await address_service.start()
    logger.info("AddressService started")

    return Runtime(store, provider, permissions, coordinator, address_service, release)


def render(console: Console, store: Store, show_address: bool = True) -> None:
    app = store.app
    text = escape(app.display_text())
    if not show_address and app.location is not None:
        text = f"Address: {app.location.latitude} {app.location.longitude}"
    if app.message:
        text += f"\n[yellow]{escape(app.message)}[/yellow]"
    console.print(Panel(text, title=f"Locus · {app.coordinator_state.value}", expand=False))


async def run(config: SystemConfig, duration: float, geocode: bool = True, console: Optional[Console] = None) -> int:
    console = console or Console()
    bus = EventBus()
    store = Store.initialize(bus)
    runtime = await init_services(config, store, geocode=geocode)

    try:
        await store.app.request_location()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration
        last_seen = None
        while True:
            app = store.app
            snapshot = (app.location_sequence, app.address, app.message, app.coordinator_state)
            if snapshot != last_seen:
                render(console, store, config.display.show_address)
                last_seen = snapshot
            if loop.time() >= deadline:
                break
            await asyncio.sleep(RENDER_INTERVAL_SEC)
    finally:
        await runtime.shutdown()
        await bus.wait_until_idle(timeout=2.0)
        Store.reset()

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="locus", description="Request location permission and follow location updates.")
    parser.add_argument("--duration", type=float, default=None, help="Seconds to run (default from config)")
    parser.add_argument("--project-root", type=Path, default=None, help="Directory holding config/settings and .env")
    parser.add_argument("--no-geocode", action="store_true", help="Do not reverse geocode coordinates")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    project_root = (args.project_root or Path.cwd()).resolve()

    # Load environment variables from .env file in project root
    load_dotenv(dotenv_path=project_root / ".env")

    config = get_config_manager(project_root).get_config()
    configure_logging(config.logging, project_root)

    duration = args.duration if args.duration is not None else config.display.duration_sec
    try:
        return asyncio.run(run(config, duration, geocode=not args.no_geocode))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
