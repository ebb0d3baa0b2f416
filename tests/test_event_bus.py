"""
Tests for the event bus.

Tests cover:
- Handler ordering and per-type dispatch
- Unsubscribe semantics
- Bounded FIFO history
- History copies
"""

import pytest

from chimera.events.bus import DEFAULT_MAX_EVENTS, EventBus
from chimera.events.types import ChimeraEvent, EventType, ProgressPayload


def log_event(payload):
    return ChimeraEvent(type=EventType.LOG, payload=payload)


class TestSubscribe:
    """Subscription and dispatch."""

    def test_handlers_called_in_registration_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe(EventType.LOG, lambda e: calls.append(("first", e.payload)))
        bus.subscribe(EventType.LOG, lambda e: calls.append(("second", e.payload)))

        bus.publish(log_event("hello"))

        assert calls == [("first", "hello"), ("second", "hello")]

    def test_only_matching_type_is_dispatched(self):
        bus = EventBus()
        errors = []
        bus.subscribe(EventType.ERROR, errors.append)

        bus.publish(log_event("not an error"))

        assert errors == []

    def test_subscribe_accepts_string_type(self):
        bus = EventBus()
        seen = []
        bus.subscribe("progress", seen.append)

        bus.emit(EventType.PROGRESS, ProgressPayload.for_step("S1", 0, 2))

        assert len(seen) == 1
        assert seen[0].payload.percent == 50

    def test_unknown_event_type_rejected(self):
        bus = EventBus()
        with pytest.raises(ValueError):
            bus.subscribe("telemetry", lambda e: None)

    def test_unsubscribe_stops_delivery(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(EventType.LOG, seen.append)

        bus.publish(log_event("one"))
        unsubscribe()
        bus.publish(log_event("two"))

        assert [e.payload for e in seen] == ["one"]

    def test_unsubscribe_twice_is_safe(self):
        bus = EventBus()
        unsubscribe = bus.subscribe(EventType.LOG, lambda e: None)

        unsubscribe()
        unsubscribe()

        assert bus.subscriber_count(EventType.LOG) == 0

    def test_unsubscribe_removes_only_its_registration(self):
        bus = EventBus()
        seen = []
        first = bus.subscribe(EventType.LOG, seen.append)
        bus.subscribe(EventType.LOG, seen.append)

        first()
        first()
        bus.publish(log_event("x"))

        assert len(seen) == 1
        assert bus.subscriber_count(EventType.LOG) == 1

    def test_handler_exception_propagates_to_publisher(self):
        bus = EventBus()

        def boom(event):
            raise RuntimeError("handler broke")

        bus.subscribe(EventType.LOG, boom)

        with pytest.raises(RuntimeError, match="handler broke"):
            bus.publish(log_event("x"))
        # The event was recorded before handlers ran
        assert len(bus.history()) == 1


class TestHistory:
    """Bounded history behaviour."""

    def test_default_cap(self):
        assert EventBus().max_events == DEFAULT_MAX_EVENTS == 1000

    def test_history_keeps_most_recent_1000(self):
        bus = EventBus()
        for i in range(1005):
            bus.publish(log_event(i))

        history = bus.history()

        assert len(history) == 1000
        assert history[0].payload == 5
        assert history[-1].payload == 1004
        assert [e.payload for e in history] == list(range(5, 1005))

    def test_history_limit(self):
        bus = EventBus()
        for i in range(10):
            bus.publish(log_event(i))

        assert [e.payload for e in bus.history(3)] == [7, 8, 9]
        assert bus.history(0) == []
        assert len(bus.history(50)) == 10

    def test_history_is_a_copy(self):
        bus = EventBus()
        bus.publish(log_event("a"))

        snapshot = bus.history()
        snapshot.clear()
        snapshot_limited = bus.history(1)
        snapshot_limited.append(log_event("b"))

        assert [e.payload for e in bus.history()] == ["a"]

    def test_custom_cap(self):
        bus = EventBus(max_events=3)
        for i in range(5):
            bus.emit(EventType.LOG, i)

        assert [e.payload for e in bus.history()] == [2, 3, 4]
        assert len(bus) == 3

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            EventBus(max_events=0)

    def test_clear_keeps_subscriptions(self):
        bus = EventBus()
        seen = []
        bus.subscribe(EventType.LOG, seen.append)
        bus.emit(EventType.LOG, "before")

        bus.clear()
        bus.emit(EventType.LOG, "after")

        assert [e.payload for e in bus.history()] == ["after"]
        assert len(seen) == 2


class TestEvents:
    """Event records."""

    def test_emit_stamps_timestamp(self):
        bus = EventBus()
        event = bus.emit(EventType.LOG, "x")

        assert isinstance(event.ts, int)
        assert event.ts > 0
        assert event.type is EventType.LOG

    def test_events_are_immutable(self):
        event = log_event("x")
        with pytest.raises(AttributeError):
            event.payload = "y"

    def test_progress_payload_percent(self):
        assert ProgressPayload.for_step("S3", 2, 3).percent == 100
        assert ProgressPayload.for_step("S1", 0, 3).percent == 33
        assert ProgressPayload.for_step("S2", 1, 3).percent == 67
