"""Tests for the event bus."""

import logging

from sitedesk.events.bus import EventBus
from sitedesk.events.types import EventType


async def test_handlers_receive_their_event_type():
    bus = EventBus()
    seen = []

    async def handler(event):
        seen.append((event.type, event.data))

    bus.on(EventType.PROJECT_CREATED, handler)
    await bus.emit(EventType.PROJECT_CREATED, {"project_id": "p1"})
    await bus.emit(EventType.STATE_RESET)
    assert seen == [(EventType.PROJECT_CREATED, {"project_id": "p1"})]


async def test_failing_handler_is_logged_and_skipped(caplog):
    bus = EventBus()
    seen = []

    async def broken(event):
        raise RuntimeError("listener crashed")

    async def handler(event):
        seen.append(event.type)

    bus.on(EventType.SHORTAGE_REPORTED, broken)
    bus.on(EventType.SHORTAGE_REPORTED, handler)
    with caplog.at_level(logging.ERROR, logger="sitedesk.events.bus"):
        event = await bus.emit(EventType.SHORTAGE_REPORTED, {"project_id": "p1"})

    assert seen == [EventType.SHORTAGE_REPORTED]
    assert "Handler failed for shortage.reported" in caplog.text
    assert bus.history()[0] is event


async def test_off_stops_delivery():
    bus = EventBus()
    seen = []

    async def handler(event):
        seen.append(event.type)

    bus.on(EventType.ACTIVITY_LOGGED, handler)
    bus.off(EventType.ACTIVITY_LOGGED, handler)
    bus.off(EventType.ACTIVITY_LOGGED, handler)
    await bus.emit(EventType.ACTIVITY_LOGGED)
    assert seen == []


async def test_history_is_bounded_newest_first():
    bus = EventBus(history_size=3)
    for n in range(5):
        await bus.emit(EventType.PROJECT_UPDATED, {"n": n})
    assert [e.data["n"] for e in bus.history()] == [4, 3, 2]
    assert [e.data["n"] for e in bus.history(limit=1)] == [4]
