"""Location Coordinator for Locus.

Decides between requesting permission and subscribing directly, and turns
permission results and provider fixes into updates of the current location.

Every mutation of the coordinator state or the current-location slot runs on
one worker task that drains a message queue. Callers on the event loop await
``request_location`` / ``on_permission_result``; OS callbacks from any thread
go through ``post_permission_result`` and the subscription sink.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from locus.shared.core import events
from locus.shared.core.event_bus import EventBus, EventPayload

from .models import (
    LOCATION_PERMISSIONS,
    Coordinate,
    CoordinatorState,
    CurrentLocation,
    PermissionKind,
    PermissionStatus,
    ProviderUnavailableError,
    SubscriptionHandle,
)
from .permission import evaluate, is_granted, normalize_result
from .ports import PermissionGateway
from .subscription import LocationSubscription

logger = logging.getLogger(__name__)

RATIONALE_MESSAGE = "Location permission is required for this feature to work"
SETTINGS_MESSAGE = "Location permission is required. Please enable it in the system settings"
UNAVAILABLE_MESSAGE = "Location not available"

PermissionResult = Mapping[Union[PermissionKind, str], bool]
_Message = tuple[Callable[..., Awaitable[Any]], tuple, Optional[asyncio.Future]]


class LocationCoordinator:
    """Permission/update state machine: IDLE, AWAITING_PERMISSION, SUBSCRIBED."""

    def __init__(
        self,
        event_bus: EventBus,
        permissions: PermissionGateway,
        subscription: LocationSubscription,
        location: Optional[CurrentLocation] = None,
    ):
        self.bus = event_bus
        self._permissions = permissions
        self._subscription = subscription
        self._location = location or CurrentLocation()

        self._state = CoordinatorState.IDLE
        self._handle: Optional[SubscriptionHandle] = None
        self.last_message: Optional[str] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue[_Message]] = None
        self._worker: Optional[asyncio.Task] = None
        self._started = False

    # --- Read access ---

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def location(self) -> CurrentLocation:
        return self._location

    @property
    def current(self) -> Optional[Coordinate]:
        return self._location.current

    @property
    def handle(self) -> Optional[SubscriptionHandle]:
        return self._handle

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start the worker and listen for permission results and user actions."""
        if self._started:
            return
        self._ensure_worker()
        await self.bus.subscribe(events.TOPIC_PERMISSION_RESULT, self.handle_permission_result)
        await self.bus.subscribe(events.TOPIC_USER_ACTION, self.handle_user_action)
        self._started = True
        logger.info("LocationCoordinator started")

    async def close(self) -> None:
        """Release the subscription and stop the worker."""
        if self._started:
            await self.bus.unsubscribe(events.TOPIC_PERMISSION_RESULT, self.handle_permission_result)
            await self.bus.unsubscribe(events.TOPIC_USER_ACTION, self.handle_user_action)
            self._started = False

        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        if self._queue is not None:
            while not self._queue.empty():
                _, _, future = self._queue.get_nowait()
                if future is not None and not future.done():
                    future.cancel()
                self._queue.task_done()

        if self._handle is not None:
            self._subscription.stop(self._handle)
            self._handle = None
        self._state = CoordinatorState.IDLE
        logger.info("LocationCoordinator closed")

    async def wait_until_idle(self) -> None:
        """Wait until every queued message has been processed."""
        if self._queue is None:
            return
        # Let thread-safe posts scheduled so far reach the queue
        await asyncio.sleep(0)
        await self._queue.join()

    # --- Operations ---

    async def request_location(self) -> CoordinatorState:
        """Subscribe if permitted, otherwise ask for permission. Returns the new state."""
        return await self._submit(self._do_request_location)

    async def on_permission_result(self, result: PermissionResult) -> CoordinatorState:
        """Apply the answer of the permission dialog. Returns the new state."""
        return await self._submit(self._do_permission_result, normalize_result(result))

    def post_permission_result(self, result: PermissionResult) -> None:
        """Thread-safe variant of ``on_permission_result`` for OS callbacks."""
        self._post(self._do_permission_result, normalize_result(result))

    # --- Event handlers ---

    async def handle_permission_result(self, payload: EventPayload) -> None:
        result = payload.get("result")
        if not isinstance(result, Mapping):
            logger.warning(f"LocationCoordinator: malformed permission result payload: {payload!r}")
            return
        await self.on_permission_result(result)

    async def handle_user_action(self, payload: EventPayload) -> None:
        if payload.get("action") == events.ACTION_REQUEST_LOCATION:
            await self.request_location()

    # --- Serialization ---

    def _ensure_worker(self) -> None:
        loop = asyncio.get_running_loop()
        if self._worker is None or self._worker.done() or self._loop is not loop:
            self._loop = loop
            self._queue = asyncio.Queue()
            self._worker = loop.create_task(self._run(), name="location-coordinator")

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            action, args, future = await queue.get()
            try:
                result = await action(*args)
            except Exception as exc:
                if future is None:
                    logger.exception(f"LocationCoordinator: '{action.__name__}' failed", exc_info=exc)
                elif not future.done():
                    future.set_exception(exc)
            else:
                if future is not None and not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()

    async def _submit(self, action: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        self._ensure_worker()
        assert self._loop is not None and self._queue is not None
        future = self._loop.create_future()
        self._queue.put_nowait((action, args, future))
        return await future

    def _post(self, action: Callable[..., Awaitable[Any]], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning(f"LocationCoordinator: not running, dropping '{action.__name__}'")
            return
        loop.call_soon_threadsafe(self._enqueue, action, args)

    def _enqueue(self, action: Callable[..., Awaitable[Any]], args: tuple) -> None:
        if self._queue is None:
            return
        self._queue.put_nowait((action, args, None))

    def _on_location(self, coordinate: Coordinate) -> None:
        """Subscription sink; may be called from any thread."""
        self._post(self._do_location_update, coordinate)

    # --- Transitions (worker only) ---

    async def _do_request_location(self) -> CoordinatorState:
        if self._state is CoordinatorState.AWAITING_PERMISSION:
            logger.debug("LocationCoordinator: permission request already pending")
            return self._state

        status = evaluate(
            self._permissions.granted_permissions(),
            self._permissions.should_show_rationale,
        )
        logger.debug(f"LocationCoordinator: permission status {status.value}")

        if status is PermissionStatus.GRANTED:
            await self._start_updates()
        else:
            if self._handle is not None:
                # Permission was revoked while subscribed
                self._subscription.stop(self._handle)
                self._handle = None
            await self._transition(CoordinatorState.AWAITING_PERMISSION)
            await self.bus.publish(
                events.TOPIC_PERMISSION_REQUESTED,
                events.create_permission_requested_event(kind.value for kind in LOCATION_PERMISSIONS),
            )
        return self._state

    async def _do_permission_result(self, result: dict[PermissionKind, bool]) -> CoordinatorState:
        if self._state is not CoordinatorState.AWAITING_PERMISSION:
            logger.debug(f"LocationCoordinator: ignoring stale permission result in state {self._state.value}")
            return self._state

        if is_granted(result):
            await self._start_updates()
            return self._state

        granted = {kind for kind, allowed in result.items() if allowed}
        status = evaluate(granted, self._permissions.should_show_rationale)
        with_rationale = status is PermissionStatus.DENIED_WITH_RATIONALE
        message = RATIONALE_MESSAGE if with_rationale else SETTINGS_MESSAGE

        logger.info(f"LocationCoordinator: permission denied (rationale={with_rationale})")
        self.last_message = message
        await self._transition(CoordinatorState.IDLE)
        await self.bus.publish(
            events.TOPIC_PERMISSION_DENIED,
            events.create_permission_denied_event(message, with_rationale),
        )
        return self._state

    async def _do_location_update(self, coordinate: Coordinate) -> None:
        sequence = self._location.set(coordinate)
        await self.bus.publish(
            events.TOPIC_LOCATION_UPDATED,
            events.create_location_updated_event(coordinate.latitude, coordinate.longitude, sequence),
        )

    async def _start_updates(self) -> None:
        try:
            self._handle = self._subscription.start(self._on_location)
        except ProviderUnavailableError as exc:
            # start() already dropped any previous registration
            self._handle = None
            self.last_message = UNAVAILABLE_MESSAGE
            logger.warning(f"LocationCoordinator: provider unavailable: {exc}")
            await self._transition(CoordinatorState.IDLE)
            await self.bus.publish(
                events.TOPIC_LOCATION_UNAVAILABLE,
                events.create_location_unavailable_event(UNAVAILABLE_MESSAGE, exc.reason),
            )
            return
        except Exception:
            self._handle = None
            logger.exception("LocationCoordinator: subscription start failed")
            await self._transition(CoordinatorState.IDLE)
            raise

        self.last_message = None
        await self._transition(CoordinatorState.SUBSCRIBED)

    async def _transition(self, new_state: CoordinatorState) -> None:
        previous = self._state
        if new_state is previous:
            return
        self._state = new_state
        logger.info(f"LocationCoordinator: {previous.value} -> {new_state.value}")
        await self.bus.publish(
            events.TOPIC_COORDINATOR_STATE,
            events.create_coordinator_state_event(new_state.value, previous.value),
        )
