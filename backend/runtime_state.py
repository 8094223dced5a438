"""
Runtime state shared by the Wikimem adapters.

This module provides the change notifier: a best-effort broadcast of
"saved"/"deleted" events to whoever is listening (the presentation layer's
event stream). Emission happens in the adapters after a mutation has been
committed to disk, never inside the store.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Literal, Optional

from pydantic import BaseModel

from config import load_settings

logger = logging.getLogger(__name__)

MEMORIES_CHANGED_EVENT = "wikimem://memories-changed"


class ChangeNotificationError(Exception):
    """No subscriber received the event."""


class ChangeEvent(BaseModel):
    action: Literal["saved", "deleted"]
    id: str

    @classmethod
    def saved(cls, memory_id: str) -> "ChangeEvent":
        return cls(action="saved", id=memory_id)

    @classmethod
    def deleted(cls, memory_id: str) -> "ChangeEvent":
        return cls(action="deleted", id=memory_id)


class Subscription:
    """
    One listener's bounded event queue, bound to the loop that created it.

    Events are handed over with call_soon_threadsafe, so emit() may run on
    threadpool workers as well as on the loop itself.
    """

    def __init__(
        self,
        notifier: "ChangeNotifier",
        loop: asyncio.AbstractEventLoop,
        maxsize: int,
    ) -> None:
        self._notifier = notifier
        self._loop = loop
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def _put(self, event: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Change event dropped for slow subscriber (%s %s)", event.action, event.id
            )

    def push(self, event: ChangeEvent) -> None:
        # Raises RuntimeError once the owning loop is closed.
        self._loop.call_soon_threadsafe(self._put, event)

    async def get(self) -> ChangeEvent:
        return await self._queue.get()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._notifier.unsubscribe(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ChangeNotifier:
    """Fan-out of ChangeEvents to every live Subscription."""

    def __init__(self, queue_size: Optional[int] = None) -> None:
        if queue_size is None:
            queue_size = load_settings().event_queue_size
        self._queue_size = max(1, queue_size)
        self._subscribers: List[Subscription] = []
        self._guard = threading.Lock()

    def subscribe(self) -> Subscription:
        """Register a listener; must be called from a running event loop."""
        subscription = Subscription(self, asyncio.get_running_loop(), self._queue_size)
        with self._guard:
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._guard:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._guard:
            return len(self._subscribers)

    def emit(self, event: ChangeEvent) -> int:
        """
        Deliver `event` to all subscribers and return how many accepted it.

        Raises:
            ChangeNotificationError: nobody is listening, or every delivery failed.
        """
        with self._guard:
            subscribers = list(self._subscribers)
        if not subscribers:
            raise ChangeNotificationError("no subscriber attached")

        delivered = 0
        failures: List[str] = []
        for subscription in subscribers:
            try:
                subscription.push(event)
                delivered += 1
            except RuntimeError as exc:
                failures.append(str(exc))
                self.unsubscribe(subscription)
        if delivered == 0:
            raise ChangeNotificationError("; ".join(failures))
        return delivered


class RuntimeState:
    def __init__(self) -> None:
        self.notifier = ChangeNotifier()

    def emit_change(self, event: ChangeEvent) -> None:
        """Best-effort notification; the mutation has already succeeded."""
        try:
            delivered = self.notifier.emit(event)
        except ChangeNotificationError as exc:
            logger.debug("Change event %s %s not delivered: %s", event.action, event.id, exc)
            return
        except Exception as exc:
            logger.warning("Failed to emit memory change event: %s", exc)
            return
        logger.debug("Change event %s %s delivered to %d subscriber(s)", event.action, event.id, delivered)


runtime_state = RuntimeState()
