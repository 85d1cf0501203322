"""Presentation layer for the session controller."""

from .error_overlay import ErrorOverlay
from .main_window import MainWindow, WindowContext
from .session_panel import EmbeddedWidget, SessionPanel, WidgetFactory

__all__ = [
    "EmbeddedWidget",
    "ErrorOverlay",
    "MainWindow",
    "SessionPanel",
    "WidgetFactory",
    "WindowContext",
]
