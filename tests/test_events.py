"""Tests for the controller event bus."""

from __future__ import annotations

import gc
import logging

import pytest

from chatdock.session.events import EventBus, SessionStateChanged, WidgetRemountRequested


class _Listener:
    def __init__(self) -> None:
        self.events: list[SessionStateChanged] = []

    def on_state(self, event: SessionStateChanged) -> None:
        self.events.append(event)


def test_publish_reaches_subscribers_of_that_type_only() -> None:
    bus = EventBus()
    states: list[SessionStateChanged] = []
    remounts: list[WidgetRemountRequested] = []
    bus.subscribe(SessionStateChanged, states.append)
    bus.subscribe(WidgetRemountRequested, remounts.append)

    bus.publish(SessionStateChanged(state="ready", generation=0, has_control=True))

    assert [event.state for event in states] == ["ready"]
    assert remounts == []


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    listener = _Listener()
    bus.subscribe(SessionStateChanged, listener.on_state)
    bus.unsubscribe(SessionStateChanged, listener.on_state)

    bus.publish(SessionStateChanged(state="error", generation=1, has_control=False))

    assert listener.events == []
    assert bus.handler_count(SessionStateChanged) == 0


def test_bound_methods_are_held_weakly() -> None:
    bus = EventBus()
    listener = _Listener()
    bus.subscribe(SessionStateChanged, listener.on_state)
    assert bus.handler_count() == 1

    del listener
    gc.collect()
    bus.publish(SessionStateChanged(state="ready", generation=0, has_control=True))

    assert bus.handler_count(SessionStateChanged) == 0


def test_handler_exception_is_logged_and_delivery_continues(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    received: list[WidgetRemountRequested] = []

    def _boom(event: WidgetRemountRequested) -> None:
        raise RuntimeError("listener broke")

    bus.subscribe(WidgetRemountRequested, _boom)
    bus.subscribe(WidgetRemountRequested, received.append)

    with caplog.at_level(logging.ERROR, logger="chatdock.session.events"):
        bus.publish(WidgetRemountRequested(generation=2))

    assert [event.generation for event in received] == [2]
    assert "Handler raised for event WidgetRemountRequested" in caplog.text
