"""Application shell wiring the session controller to host collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from ..services.settings import Settings, SettingsStore
from ..session.broker import CredentialBroker
from ..session.controller import SessionController
from ..session.dispatcher import COLOR_SCHEMES, FactAction, ToolDispatcher
from ..session.widget_options import build_widget_options
from ..theme import ThemeManager, theme_manager
from .session_panel import SessionPanel, WidgetFactory

try:  # pragma: no cover - Qt imports are optional during tests
    from PySide6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget
except Exception:  # pragma: no cover - PySide6 not available
    QLabel = None  # type: ignore[assignment]
    QMainWindow = None  # type: ignore[assignment]
    QVBoxLayout = None  # type: ignore[assignment]
    QWidget = None  # type: ignore[assignment]

LOGGER = logging.getLogger(__name__)

WINDOW_TITLE = "ChatDock"
SUBTITLE = 'Press "Start" to kick off the agent, then refine the output with follow-up questions.'


@dataclass(slots=True)
class WindowContext:
    """Shared context passed to the main window when constructing the UI."""

    settings: Optional[Settings] = None
    settings_store: Optional[SettingsStore] = None
    broker: Optional[CredentialBroker] = None
    widget_factory: Optional[WidgetFactory] = None
    themes: Optional[ThemeManager] = None


class MainWindow:
    """Owns the controller graph for one window.

    The window is the host application from the controller's point of view:
    it persists the color scheme the agent asks for, receives saved facts and
    is told when a response ends.
    """

    def __init__(self, context: WindowContext) -> None:
        self._settings = context.settings or Settings()
        self._store = context.settings_store
        self._themes = context.themes or theme_manager
        self._broker = context.broker or CredentialBroker(self._settings.broker_settings())
        self.saved_facts: list[FactAction] = []

        dispatcher = ToolDispatcher(
            on_theme_request=self.set_color_scheme,
            on_fact=self._handle_fact,
        )
        self.controller = SessionController(
            self._broker,
            dispatcher=dispatcher,
            on_response_end=self._handle_response_end,
            auto_start_text=self._settings.auto_start_text,
        )
        self.panel = SessionPanel(
            self.controller,
            options_provider=self.widget_options,
            widget_factory=context.widget_factory,
        )
        self._qt_window: Any = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def color_scheme(self) -> str:
        return self._settings.color_scheme

    def widget_options(self) -> Dict[str, Any]:
        return build_widget_options(self._settings, themes=self._themes)

    def set_color_scheme(self, scheme: str) -> None:
        """Apply and persist ``scheme``; invoked for agent theme requests."""

        if scheme not in COLOR_SCHEMES:
            raise ValueError(f"Unknown color scheme {scheme!r}")
        if scheme == self._settings.color_scheme:
            return
        self._settings = replace(self._settings, color_scheme=scheme)
        if self._store is not None:
            try:
                self._store.save(self._settings)
            except OSError:
                LOGGER.warning("Unable to persist color scheme %s", scheme, exc_info=True)
        self._themes.apply_to_application(scheme)
        self.panel.refresh_options()
        LOGGER.info("Color scheme changed to %s", scheme)

    def show(self) -> Any:
        """Build and show the Qt window; returns ``None`` when PySide6 is unavailable."""

        if QMainWindow is None:
            return None
        window = QMainWindow()
        window.setWindowTitle(WINDOW_TITLE)
        central = QWidget(window)
        layout = QVBoxLayout(central)
        subtitle = QLabel(SUBTITLE, central)
        subtitle.setWordWrap(True)
        layout.addWidget(subtitle)
        panel_widget = self.panel.install(central)
        if panel_widget is not None:
            layout.addWidget(panel_widget, stretch=1)
        window.setCentralWidget(central)
        self._themes.apply_to_application(self._settings.color_scheme)
        self.panel.mount()
        window.resize(720, 760)
        window.show()
        self._qt_window = window
        return window

    async def aclose(self) -> None:
        self.panel.close()
        await self.controller.dispatcher.drain()
        await self._broker.aclose()

    async def _handle_fact(self, action: FactAction) -> None:
        LOGGER.info("Widget action: %s %s %r", action.type, action.fact_id, action.fact_text)
        self.saved_facts.append(action)

    def _handle_response_end(self) -> None:
        LOGGER.debug("Response end")


__all__ = ["MainWindow", "WindowContext"]
