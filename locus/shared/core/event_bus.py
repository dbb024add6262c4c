"""In-process publish/subscribe for the Locus layers.

Every handler invocation is its own task, so a slow geocoder lookup never
holds up the coordinator or the display. Tests and shutdown use
``wait_until_idle`` to let in-flight deliveries finish.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, TypeAlias

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]

logger = logging.getLogger(__name__)


class EventBus:
    """Topic based hub for intents, results and notifications."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._in_flight: set[asyncio.Task] = set()

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Attach ``handler`` to ``topic``. Subscribing twice is a no-op."""
        handlers = self._subscribers[topic]
        if handler not in handlers:
            handlers.append(handler)

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Schedule delivery of ``payload`` to every handler of ``topic``.

        Handlers are started in subscription order and the call returns
        without waiting for them.
        """
        handlers = tuple(self._subscribers.get(topic, ()))
        if not handlers:
            logger.debug(f"EventBus: '{topic}' has no subscribers")
            return

        logger.debug(f"EventBus: '{topic}' -> {len(handlers)} handler(s)")
        for handler in handlers:
            task = asyncio.create_task(self._deliver(topic, handler, payload))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait until no delivery is in flight.

        Deliveries started by handlers while waiting are waited for too.
        Returns False if ``timeout`` seconds pass first.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._in_flight:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"EventBus: {len(self._in_flight)} deliveries still running after {timeout}s")
                return False
            await asyncio.wait(set(self._in_flight), timeout=remaining)
            # let done callbacks run before checking again
            await asyncio.sleep(0)
        return True

    async def _deliver(self, topic: str, handler: EventHandler, payload: EventPayload) -> None:
        name = getattr(handler, "__name__", repr(handler))
        try:
            await handler(payload)
        except Exception:
            logger.exception(f"EventBus: handler '{name}' failed on '{topic}'")

    def clear(self) -> None:
        """Drop every subscription. In-flight deliveries are left to finish."""
        self._subscribers.clear()
