"""Lifecycle coordinator for one embedded chat widget session.

The controller owns every piece of mutable session state: lifecycle state,
widget generation, the auto-start guard and (through the dispatcher) the
processed fact ids. All methods are expected to run on the event loop
thread; state mutations after a suspension point are skipped once the
controller has been torn down.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from .broker import CredentialBroker, NegotiationFailure, NegotiationOutcome, NegotiationSuccess
from .dispatcher import ToolDispatcher, ToolInvocation, ToolResult
from .error_surface import ErrorSurface, ErrorSurfaceSnapshot
from .errors import AutoStartError, ProtocolError, SessionError
from .events import ErrorSurfaceChanged, EventBus, SessionStateChanged, WidgetRemountRequested

LOGGER = logging.getLogger(__name__)

START_MESSAGE = "Start"


class SessionState(Enum):
    """Lifecycle state of the controller."""

    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class WidgetControl(Protocol):
    """Handle exposed by the embedded widget once it is ready."""

    async def send_user_message(self, text: str, *, new_thread: bool = False) -> Any:
        ...


class SessionController:
    """State machine mediating between the widget, the broker and the host.

    The widget calls :meth:`get_client_secret` for credentials,
    :meth:`on_client_tool` for tool calls and :meth:`handle_event` for
    lifecycle events (``ready``, ``response.start``, ``response.end``,
    ``thread.change``, ``error``). The host calls :meth:`retry` when the
    user asks to restart after an error and :meth:`teardown` on unmount.
    """

    def __init__(
        self,
        broker: CredentialBroker,
        *,
        dispatcher: ToolDispatcher | None = None,
        on_response_end: Callable[[], None] | None = None,
        auto_start_text: str | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._broker = broker
        self._dispatcher = dispatcher or ToolDispatcher()
        self._on_response_end = on_response_end
        self._bus: EventBus = bus or EventBus()
        self._surface = ErrorSurface()
        self._state = SessionState.INITIALIZING
        self._generation = 0
        self._control: WidgetControl | None = None
        self._auto_start_text = (auto_start_text or "").strip()
        self._auto_start_fired = False
        self._mounted = True
        self._event_handlers: dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "ready": self._handle_ready,
            "response.start": self._handle_response_start,
            "response.end": self._handle_response_end,
            "thread.change": self._handle_thread_change,
            "error": self._handle_widget_error,
        }

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_initializing(self) -> bool:
        return self._state is SessionState.INITIALIZING

    @property
    def control(self) -> WidgetControl | None:
        return self._control

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def error_surface(self) -> ErrorSurface:
        return self._surface

    @property
    def auto_start_fired(self) -> bool:
        return self._auto_start_fired

    @property
    def auto_start_text(self) -> str:
        return self._auto_start_text

    def set_auto_start_text(self, text: str | None) -> asyncio.Future[None] | None:
        """Configure the auto-start message; sends it if the widget is already ready."""

        self._auto_start_text = (text or "").strip()
        return self._maybe_auto_start()

    def overlay_snapshot(self) -> ErrorSurfaceSnapshot:
        return self._surface.snapshot(initializing=self.is_initializing)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def request_credential(self, previous_credential: str | None = None) -> NegotiationOutcome:
        """Negotiate a credential and apply the outcome to controller state."""

        if self._broker.is_configured and self._mounted:
            self._begin_negotiation(previous_credential)

        outcome = await self._broker.negotiate(previous_credential)

        if not self._mounted:
            LOGGER.debug("Controller torn down during negotiation; dropping outcome")
            return outcome

        if isinstance(outcome, NegotiationSuccess):
            self._surface.clear()
            if self._state is SessionState.INITIALIZING and self._control is not None:
                self._state = self._settled_state()
        else:
            self._enter_error(outcome.error)
        self._notify()
        return outcome

    async def get_client_secret(self, current_secret: str | None = None) -> str:
        """Widget-facing credential callback; raises the failure's error."""

        outcome = await self.request_credential(current_secret)
        if isinstance(outcome, NegotiationFailure):
            raise outcome.error
        return outcome.credential

    def _begin_negotiation(self, previous_credential: str | None) -> None:
        if not previous_credential:
            self._state = SessionState.INITIALIZING
        elif self._state is SessionState.ERROR:
            self._state = self._settled_state()
        self._surface.clear()
        self._notify()

    def _enter_error(self, error: SessionError) -> None:
        self._state = SessionState.ERROR
        self._surface.show(error)

    def _settled_state(self) -> SessionState:
        return SessionState.READY if self._control is not None else SessionState.INITIALIZING

    # ------------------------------------------------------------------
    # Widget events
    # ------------------------------------------------------------------

    def handle_event(self, name: str, payload: Mapping[str, Any] | None = None) -> Any:
        """Route a widget lifecycle event to its handler."""

        handler = self._event_handlers.get(name)
        if handler is None:
            LOGGER.debug("Ignoring unknown widget event '%s'", name)
            return None
        if not self._mounted:
            LOGGER.debug("Ignoring widget event '%s' after teardown", name)
            return None
        return handler(payload or {})

    def attach_control(self, control: WidgetControl) -> asyncio.Future[None] | None:
        """Record the widget handle; returns the auto-start task if one was launched."""

        return self.handle_event("ready", {"control": control})

    def _handle_ready(self, payload: Mapping[str, Any]) -> asyncio.Future[None] | None:
        control = payload.get("control")
        if control is None:
            LOGGER.warning("Widget reported ready without a control handle")
            return None
        self._control = control
        if self._state is not SessionState.ERROR:
            self._state = SessionState.READY
        self._notify()
        return self._maybe_auto_start()

    def _handle_response_start(self, payload: Mapping[str, Any]) -> None:
        if not self._surface.clear():
            return
        if self._state is SessionState.ERROR:
            self._state = self._settled_state()
        self._notify()

    def _handle_response_end(self, payload: Mapping[str, Any]) -> None:
        if self._on_response_end is None:
            return
        try:
            self._on_response_end()
        except Exception:
            LOGGER.exception("Response-end handler failed")

    def _handle_thread_change(self, payload: Mapping[str, Any]) -> None:
        self._dispatcher.clear_processed_facts()
        self._auto_start_fired = False

    def _handle_widget_error(self, payload: Mapping[str, Any]) -> None:
        LOGGER.error("Chat widget error: %s", payload.get("error"))

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    async def on_client_tool(self, invocation: ToolInvocation | Mapping[str, Any]) -> dict[str, Any]:
        """Widget-facing tool callback returning ``{"success": bool}``."""

        if not isinstance(invocation, ToolInvocation):
            invocation = ToolInvocation.from_payload(invocation)
        if not self._mounted:
            LOGGER.debug("Rejecting tool %s after teardown", invocation.name)
            return ToolResult(success=False, error=ProtocolError(tool_name=invocation.name)).to_dict()
        result = await self._dispatcher.dispatch(invocation)
        return result.to_dict()

    # ------------------------------------------------------------------
    # Auto-start and manual start
    # ------------------------------------------------------------------

    def _maybe_auto_start(self) -> asyncio.Future[None] | None:
        control = self._control
        if control is None or not self._auto_start_text or self._auto_start_fired or not self._mounted:
            return None
        self._auto_start_fired = True
        return asyncio.ensure_future(
            self._send_auto_start(control, self._auto_start_text, self._generation)
        )

    async def _send_auto_start(self, control: WidgetControl, text: str, generation: int) -> None:
        try:
            await control.send_user_message(text, new_thread=True)
        except Exception as exc:
            LOGGER.error("Failed to send auto-start message", exc_info=True)
            if self._mounted and generation == self._generation:
                self._surface.show(AutoStartError(details={"exception": type(exc).__name__}))
                self._notify()

    async def send_start_message(self, text: str = START_MESSAGE) -> bool:
        """Send ``text`` as a new thread; used by the manual Start control."""

        control = self._control
        if control is None:
            return False
        try:
            await control.send_user_message(text, new_thread=True)
        except Exception:
            LOGGER.error("Failed to send %r message", text, exc_info=True)
            return False
        return True

    # ------------------------------------------------------------------
    # Reset and teardown
    # ------------------------------------------------------------------

    def retry(self) -> bool:
        """User-initiated restart; only honoured while a retryable error is shown."""

        if not self._mounted:
            LOGGER.debug("Retry requested after teardown; ignoring")
            return False
        if not self._surface.retry_available:
            LOGGER.debug("Retry requested without a retryable error; ignoring")
            return False
        self.reset()
        return True

    def reset(self) -> None:
        """Discard the current widget and start a new generation."""

        if not self._mounted:
            return
        self._dispatcher.clear_processed_facts()
        self._surface.clear()
        self._state = SessionState.INITIALIZING
        self._generation += 1
        self._control = None
        self._auto_start_fired = False
        LOGGER.info("Chat session reset (generation=%s)", self._generation)
        self._bus.publish(WidgetRemountRequested(generation=self._generation))
        self._notify()

    def teardown(self) -> None:
        """Mark the controller unmounted; in-flight work stops touching state."""

        self._mounted = False
        self._control = None

    def _notify(self) -> None:
        snapshot = self.overlay_snapshot()
        LOGGER.debug(
            "Render state (state=%s, generation=%s, has_control=%s, has_error=%s)",
            self._state.value,
            self._generation,
            self._control is not None,
            snapshot.message is not None,
        )
        self._bus.publish(
            SessionStateChanged(
                state=self._state.value,
                generation=self._generation,
                has_control=self._control is not None,
            )
        )
        self._bus.publish(
            ErrorSurfaceChanged(
                message=snapshot.message,
                fallback_message=snapshot.fallback_message,
                retry_available=snapshot.retry_available,
            )
        )


__all__ = ["START_MESSAGE", "SessionController", "SessionState", "WidgetControl"]
