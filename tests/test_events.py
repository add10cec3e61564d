"""Tests for the event bus."""

from __future__ import annotations

import logging

from projtrack.events import EventBus, EventRecorder, EventType


async def test_events_are_numbered_in_emit_order(event_bus, recorder):
    first = await event_bus.emit(EventType.MIGRATION_STARTED)
    second = await event_bus.emit(EventType.BACKUP_CREATED, {"snapshot_id": "s1"})

    assert (first.sequence, second.sequence) == (1, 2)
    assert recorder.events == [first, second]
    assert recorder.of(EventType.BACKUP_CREATED) == [{"snapshot_id": "s1"}]
    assert first.emitted_at


async def test_typed_subscription_filters(event_bus):
    failures = EventRecorder()
    event_bus.subscribe(failures, EventType.RECORD_FAILED, EventType.MIGRATION_FAILED)

    await event_bus.emit(EventType.RECORD_MIGRATED)
    await event_bus.emit(EventType.RECORD_FAILED)
    await event_bus.emit(EventType.MIGRATION_FAILED)

    assert failures.types() == [EventType.RECORD_FAILED, EventType.MIGRATION_FAILED]


async def test_delivery_follows_subscription_order():
    bus = EventBus()
    calls = []

    async def typed(event):
        calls.append("typed")

    async def everything(event):
        calls.append("all")

    bus.on_all(everything)
    bus.on(EventType.PROJECT_CREATED, typed)
    await bus.emit(EventType.PROJECT_CREATED)

    assert calls == ["all", "typed"]


async def test_unsubscribe_and_off():
    bus = EventBus()
    recorder = EventRecorder()
    unsubscribe = bus.on(EventType.PROJECT_CREATED, recorder)
    await bus.emit(EventType.PROJECT_CREATED)
    unsubscribe()
    unsubscribe()
    await bus.emit(EventType.PROJECT_CREATED)
    assert len(recorder.events) == 1

    bus.on_all(recorder)
    bus.on(EventType.PROJECT_DELETED, recorder)
    bus.off(recorder)
    await bus.emit(EventType.PROJECT_DELETED)
    assert len(recorder.events) == 1


async def test_listener_error_is_isolated(caplog):
    bus = EventBus()
    recorder = EventRecorder()

    async def broken(event):
        raise RuntimeError("listener bug")

    bus.on_all(broken)
    bus.on_all(recorder)
    with caplog.at_level(logging.ERROR, logger="projtrack.events.bus"):
        event = await bus.emit(EventType.MIGRATION_COMPLETED, {"success": 1})

    assert recorder.events == [event]
    assert bus.listener_errors == 1
    assert "Error in event listener" in caplog.text


async def test_payload_is_copied():
    bus = EventBus()
    recorder = EventRecorder()
    bus.on_all(recorder)
    payload = {"project_id": "p1"}

    await bus.emit(EventType.PROJECT_DELETED, payload)
    payload["project_id"] = "changed"

    assert recorder.of(EventType.PROJECT_DELETED) == [{"project_id": "p1"}]


async def test_clear():
    bus = EventBus()
    recorder = EventRecorder()
    bus.on_all(recorder)
    bus.clear()
    await bus.emit(EventType.MIGRATION_STARTED)
    assert recorder.events == []
