"""sitedesk event system."""

from sitedesk.events.bus import Event, EventBus
from sitedesk.events.types import EventType

__all__ = ["Event", "EventBus", "EventType"]
