"""Async event bus for projtrack.

Every emission becomes an :class:`Event` with a per-bus sequence number, so
listeners that collect events can replay a migration run in order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from projtrack.events.types import EventType
from projtrack.models.project import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    type: EventType
    data: dict[str, Any]
    sequence: int
    emitted_at: str = field(default_factory=utc_now)


Listener = Callable[[Event], Awaitable[None]]


@dataclass
class _Subscription:
    listener: Listener
    # None means every event type
    types: frozenset[EventType] | None


class EventBus:
    """Async pub/sub bus delivering events in subscription order.

    Listener errors are logged and counted in ``listener_errors``; they
    never reach the emitter, so a faulty observer cannot abort a run.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._sequence = 0
        self.listener_errors = 0

    def subscribe(self, listener: Listener, *event_types: EventType) -> Callable[[], None]:
        """Deliver ``event_types`` (all types if none given) to ``listener``.

        Returns:
            A callable that removes this subscription.
        """
        subscription = _Subscription(listener, frozenset(event_types) or None)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def on(self, event_type: EventType, listener: Listener) -> Callable[[], None]:
        return self.subscribe(listener, event_type)

    def on_all(self, listener: Listener) -> Callable[[], None]:
        return self.subscribe(listener)

    def off(self, listener: Listener) -> None:
        """Drop every subscription of ``listener``."""
        self._subscriptions = [s for s in self._subscriptions if s.listener is not listener]

    async def emit(self, event_type: EventType, data: dict[str, Any] | None = None) -> Event:
        self._sequence += 1
        event = Event(event_type, dict(data or {}), self._sequence)
        targets = [
            s.listener
            for s in self._subscriptions
            if s.types is None or event_type in s.types
        ]
        logger.debug("Event #%d %s -> %d listener(s)", event.sequence, event_type, len(targets))

        for listener in targets:
            try:
                await listener(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                self.listener_errors += 1
                logger.exception("Error in event listener for %s", event_type)
        return event

    def clear(self) -> None:
        self._subscriptions.clear()


class EventRecorder:
    """Listener that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def __call__(self, event: Event) -> None:
        self.events.append(event)

    def types(self) -> list[EventType]:
        return [event.type for event in self.events]

    def of(self, event_type: EventType) -> list[dict[str, Any]]:
        return [event.data for event in self.events if event.type == event_type]
