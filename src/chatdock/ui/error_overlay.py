"""Overlay presenting the session error surface with optional Qt widgets."""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..session.events import ErrorSurfaceChanged

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

RETRY_LABEL = "Restart chat"


class ErrorOverlay:
    """Shows the current error, else the initializing text, else nothing."""

    def __init__(self, *, on_retry: Callable[[], Any] | None = None) -> None:
        self.message: str | None = None
        self.fallback_message: str | None = None
        self.retry_available = False
        self._on_retry = on_retry
        self._widget: Any = None
        self._label: Any = None
        self._retry_button: Any = None

    @property
    def text(self) -> str:
        return self.message or self.fallback_message or ""

    @property
    def visible(self) -> bool:
        return bool(self.text)

    @property
    def widget(self) -> Any:
        return self._widget

    def update(self, event: ErrorSurfaceChanged) -> None:
        self.message = event.message
        self.fallback_message = event.fallback_message
        self.retry_available = event.retry_available and self._on_retry is not None
        self._refresh()

    def trigger_retry(self) -> bool:
        if not self.retry_available or self._on_retry is None:
            return False
        self._on_retry()
        return True

    def install(self, parent: Any | None = None) -> Any:
        """Create the Qt widgets; returns ``None`` when PySide6 is unavailable."""

        if QWidget is None:
            return None
        widget = QWidget(parent)
        widget.setObjectName("chatdock-error-overlay")
        layout = QVBoxLayout(widget)
        self._label = QLabel(widget)
        self._label.setWordWrap(True)
        self._label.setAlignment(Qt.AlignCenter)
        self._retry_button = QPushButton(RETRY_LABEL, widget)
        self._retry_button.clicked.connect(self.trigger_retry)
        layout.addWidget(self._label)
        layout.addWidget(self._retry_button, alignment=Qt.AlignHCenter)
        self._widget = widget
        self._refresh()
        return widget

    def _refresh(self) -> None:
        if self._widget is None:
            return
        self._label.setText(self.text)
        self._retry_button.setVisible(self.retry_available)
        self._widget.setVisible(self.visible)


__all__ = ["ErrorOverlay", "RETRY_LABEL"]
