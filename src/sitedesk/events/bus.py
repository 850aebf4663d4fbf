"""Async event bus for sitedesk.

Every committed change to the session is published here. Listeners are
awaited in registration order; the bus also keeps a short history so the
server can show what just happened without a listener of its own.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sitedesk.events.types import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    type: EventType
    data: dict[str, Any]
    at: datetime = field(default_factory=lambda: datetime.now(UTC))


Handler = Callable[[Event], Coroutine[Any, Any, None]]


class EventBus:
    """Pub/sub for session events with a bounded replay history."""

    def __init__(self, *, history_size: int = 100) -> None:
        self._handlers: dict[EventType, list[Handler]] = defaultdict(list)
        self._history: deque[Event] = deque(maxlen=history_size)

    def on(self, event_type: EventType, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def off(self, event_type: EventType, handler: Handler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    async def emit(self, event_type: EventType, data: dict[str, Any] | None = None) -> Event:
        """Record and deliver an event.

        A failing handler is logged and skipped; it never aborts the commit
        that produced the event.
        """
        event = Event(type=event_type, data=data or {})
        self._history.appendleft(event)

        for handler in list(self._handlers.get(event_type, [])):
            try:
                await handler(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Handler failed for %s", event_type)
        return event

    def history(self, *, limit: int | None = None) -> list[Event]:
        """Most recent events first."""
        events = list(self._history)
        return events[:limit] if limit is not None else events
