"""Notifications published by the session controller.

UI components subscribe to these instead of polling controller state. The
bus runs handlers synchronously on the caller's thread (the Qt/asyncio loop
thread), matching the controller's single-threaded model.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
from weakref import WeakMethod

LOGGER = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for controller notifications."""


@dataclass(slots=True)
class SessionStateChanged(Event):
    """Emitted after every lifecycle transition.

    Attributes:
        state: Name of the new lifecycle state (``initializing``, ``ready``, ``error``).
        generation: Current widget generation.
        has_control: Whether a widget handle is attached.
    """

    state: str
    generation: int
    has_control: bool


@dataclass(slots=True)
class ErrorSurfaceChanged(Event):
    """Emitted when the overlay content changes.

    Attributes:
        message: Explicit error text, if any.
        fallback_message: Initializing text shown when no error is set.
        retry_available: Whether the manual reset action should be offered.
    """

    message: str | None
    fallback_message: str | None
    retry_available: bool


@dataclass(slots=True)
class WidgetRemountRequested(Event):
    """Emitted on reset; hosts must discard the current widget and mount a new one."""

    generation: int


class EventBus(Generic[E]):
    """Typed publish/subscribe bus.

    Bound methods are held weakly so a closed panel does not keep receiving
    events; plain functions and lambdas are held strongly. Handler
    exceptions are logged and do not stop delivery to other handlers.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: defaultdict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.resolve() == handler:
                handlers.pop(index)
                return

    def publish(self, event: E) -> None:
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        LOGGER.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))
        alive: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                continue
            alive.append(handler_ref)
            try:
                handler(event)
            except Exception:
                LOGGER.exception("Handler raised for event %s", event_type.__name__)
        if len(alive) != len(handlers):
            self._handlers[event_type] = alive

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())

    def clear(self) -> None:
        self._handlers.clear()


class _HandlerRef:
    __slots__ = ("_target", "_weak")

    def __init__(self, target: object, weak: bool) -> None:
        self._target = target
        self._weak = weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), weak=True)
            except TypeError:
                pass
        return cls(handler, weak=False)

    def resolve(self) -> Handler | None:
        if self._weak:
            return self._target()  # type: ignore[operator]
        return self._target  # type: ignore[return-value]


__all__ = [
    "ErrorSurfaceChanged",
    "Event",
    "EventBus",
    "Handler",
    "SessionStateChanged",
    "WidgetRemountRequested",
]
