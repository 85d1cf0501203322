"""Panel hosting the embedded widget, its overlay and the Start control."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Protocol

from ..session.controller import SessionController
from ..session.events import ErrorSurfaceChanged, SessionStateChanged, WidgetRemountRequested
from .error_overlay import ErrorOverlay

try:  # pragma: no cover - Qt imports are optional during tests
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget
except Exception:  # pragma: no cover - PySide6 not available
    Qt = None  # type: ignore[assignment]
    QLabel = None  # type: ignore[assignment]
    QPushButton = None  # type: ignore[assignment]
    QVBoxLayout = None  # type: ignore[assignment]
    QWidget = None  # type: ignore[assignment]

LOGGER = logging.getLogger(__name__)

LOADING_TEXT = "Loading chat…"


class EmbeddedWidget(Protocol):
    """Host-side handle of one mounted widget instance."""

    def set_options(self, options: Dict[str, Any]) -> None:
        ...

    def close(self) -> None:
        ...


WidgetFactory = Callable[[SessionController, Dict[str, Any]], EmbeddedWidget]


class SessionPanel:
    """Binds a :class:`SessionController` to its on-screen pieces.

    One widget instance is mounted per controller generation; a reset
    closes the current instance and mounts a fresh one so no widget-owned
    state survives.
    """

    def __init__(
        self,
        controller: SessionController,
        *,
        options_provider: Callable[[], Dict[str, Any]],
        widget_factory: WidgetFactory | None = None,
    ) -> None:
        self._controller = controller
        self._options_provider = options_provider
        self._widget_factory = widget_factory
        self.overlay = ErrorOverlay(on_retry=controller.retry)
        self.start_enabled = False
        self.mounted_generation: int | None = None
        self._embedded: EmbeddedWidget | None = None
        self._container: Any = None
        self._start_button: Any = None
        self._placeholder: Any = None

        bus = controller.bus
        bus.subscribe(ErrorSurfaceChanged, self._on_surface_changed)
        bus.subscribe(SessionStateChanged, self._on_state_changed)
        bus.subscribe(WidgetRemountRequested, self._on_remount_requested)
        self.overlay.update(self._surface_event())

    @property
    def controller(self) -> SessionController:
        return self._controller

    @property
    def embedded(self) -> EmbeddedWidget | None:
        return self._embedded

    def mount(self) -> EmbeddedWidget | None:
        """Mount a widget for the controller's current generation."""

        if self._widget_factory is None:
            LOGGER.debug("No widget factory configured; showing placeholder")
            return None
        self._unmount()
        self._embedded = self._widget_factory(self._controller, self._options_provider())
        self.mounted_generation = self._controller.generation
        self._attach_embedded()
        return self._embedded

    def refresh_options(self) -> None:
        if self._embedded is not None:
            self._embedded.set_options(self._options_provider())

    async def start_clicked(self) -> bool:
        if not self.start_enabled:
            return False
        return await self._controller.send_start_message()

    def close(self) -> None:
        self._controller.teardown()
        self._unmount()

    def install(self, parent: Any | None = None) -> Any:
        """Create the Qt widgets; returns ``None`` when PySide6 is unavailable."""

        if QWidget is None:
            return None
        container = QWidget(parent)
        layout = QVBoxLayout(container)
        overlay_widget = self.overlay.install(container)
        if overlay_widget is not None:
            layout.addWidget(overlay_widget)
        self._start_button = QPushButton("Start", container)
        self._start_button.setEnabled(self.start_enabled)
        self._start_button.clicked.connect(lambda: asyncio.ensure_future(self.start_clicked()))
        layout.addWidget(self._start_button, alignment=Qt.AlignHCenter)
        self._placeholder = QLabel(LOADING_TEXT, container)
        self._placeholder.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._placeholder, stretch=1)
        self._container = container
        self._attach_embedded()
        return container

    # ------------------------------------------------------------------
    # Bus handlers
    # ------------------------------------------------------------------

    def _on_surface_changed(self, event: ErrorSurfaceChanged) -> None:
        self.overlay.update(event)

    def _on_state_changed(self, event: SessionStateChanged) -> None:
        self.start_enabled = event.has_control
        if self._start_button is not None:
            self._start_button.setEnabled(self.start_enabled)
        if self._placeholder is not None:
            self._placeholder.setVisible(not event.has_control)

    def _on_remount_requested(self, event: WidgetRemountRequested) -> None:
        LOGGER.debug("Remounting widget for generation %s", event.generation)
        self.mount()

    def _attach_embedded(self) -> None:
        qt_widget = getattr(self._embedded, "qt_widget", None)
        if self._container is not None and qt_widget is not None:
            self._container.layout().addWidget(qt_widget, stretch=1)

    def _unmount(self) -> None:
        if self._embedded is None:
            return
        try:
            self._embedded.close()
        except Exception:
            LOGGER.exception("Failed to close embedded widget")
        self._embedded = None
        self.mounted_generation = None

    def _surface_event(self) -> ErrorSurfaceChanged:
        snapshot = self._controller.overlay_snapshot()
        return ErrorSurfaceChanged(
            message=snapshot.message,
            fallback_message=snapshot.fallback_message,
            retry_available=snapshot.retry_available,
        )


__all__ = ["EmbeddedWidget", "LOADING_TEXT", "SessionPanel", "WidgetFactory"]
