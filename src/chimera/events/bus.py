"""
In-process publish/subscribe bus with bounded history.

Handlers run synchronously on the publisher's stack, in registration order.
A handler that raises propagates into ``publish``; keeping handlers fast and
exception-free is the subscriber's job.
"""

from collections import deque
from collections.abc import Callable
from typing import Any

from ..observability.logging import get_logger
from .types import ChimeraEvent, EventHandler, EventType

logger = get_logger(__name__)

DEFAULT_MAX_EVENTS = 1000


class EventBus:
    """Publish/subscribe channel for workflow lifecycle events."""

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        if max_events <= 0:
            raise ValueError("max_events must be positive")
        self.max_events = max_events
        self._events: deque[ChimeraEvent] = deque(maxlen=max_events)
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def subscribe(self, event_type: EventType | str, handler: EventHandler) -> Callable[[], None]:
        """
        Register ``handler`` for ``event_type``.

        Returns a callable that removes exactly this registration. Calling it
        again is a no-op.
        """
        event_type = EventType(event_type)
        # Each registration gets its own identity so the same function can be
        # subscribed twice and removed one registration at a time.
        token = _Registration(handler)
        self._handlers.setdefault(event_type, []).append(token)

        def unsubscribe() -> None:
            current = self._handlers.get(event_type)
            if current and token in current:
                current.remove(token)

        return unsubscribe

    def publish(self, event: ChimeraEvent) -> None:
        """Record ``event`` then deliver it to its subscribers."""
        # deque(maxlen) drops the oldest entry once the cap is exceeded
        self._events.append(event)

        for handler in list(self._handlers.get(event.type, ())):
            handler(event)

    def emit(self, event_type: EventType | str, payload: Any = None) -> ChimeraEvent:
        """Stamp and publish a new event, returning it."""
        event = ChimeraEvent(type=EventType(event_type), payload=payload)
        self.publish(event)
        return event

    def history(self, limit: int | None = None) -> list[ChimeraEvent]:
        """Most recent ``limit`` events (all when None), oldest first, as a new list."""
        if limit is None:
            return list(self._events)
        if limit <= 0:
            return []
        return list(self._events)[-limit:]

    def clear(self) -> None:
        """Drop the event history. Subscriptions are kept."""
        self._events.clear()
        logger.debug("Event history cleared")

    def subscriber_count(self, event_type: EventType | str) -> int:
        return len(self._handlers.get(EventType(event_type), ()))

    def __len__(self) -> int:
        return len(self._events)


class _Registration:
    """Wraps a handler so each subscription has its own identity."""

    __slots__ = ("handler",)

    def __init__(self, handler: EventHandler):
        self.handler = handler

    def __call__(self, event: ChimeraEvent) -> None:
        self.handler(event)
