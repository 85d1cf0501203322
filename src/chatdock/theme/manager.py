"""Light/dark theme registry and Qt palette integration."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, cast

from .models import ColorScheme, ColorTuple, Theme

LOGGER = logging.getLogger(__name__)

_DARK_PALETTE: Dict[str, ColorTuple] = {
    "background": (2, 6, 23),
    "surface": (15, 23, 42),
    "surface_alt": (30, 41, 59),
    "border": (51, 65, 85),
    "foreground": (248, 250, 252),
    "text_muted": (148, 163, 184),
    "accent": (96, 165, 250),
    "selection": (30, 64, 175),
    "selection_foreground": (255, 255, 255),
    "status_error": (248, 113, 113),
    "link": (125, 211, 252),
}

_LIGHT_PALETTE: Dict[str, ColorTuple] = {
    "background": (248, 250, 252),
    "surface": (255, 255, 255),
    "surface_alt": (241, 245, 249),
    "border": (203, 213, 225),
    "foreground": (30, 41, 59),
    "text_muted": (100, 116, 139),
    "accent": (37, 99, 235),
    "selection": (191, 219, 254),
    "selection_foreground": (15, 23, 42),
    "status_error": (220, 38, 38),
    "link": (3, 105, 161),
}


def build_dark_theme() -> Theme:
    return Theme(scheme="dark", title="Slate Dark", palette=_DARK_PALETTE, metadata={"qt_style": "Fusion"})


def build_light_theme() -> Theme:
    return Theme(scheme="light", title="Slate Light", palette=_LIGHT_PALETTE, metadata={"qt_style": "Fusion"})


class ThemeManager:
    """Resolves a color scheme to its :class:`Theme` and applies it to Qt."""

    def __init__(self, themes: Iterable[Theme] | None = None, *, default_scheme: ColorScheme = "light") -> None:
        self._themes: Dict[str, Theme] = {}
        for theme in themes or (build_light_theme(), build_dark_theme()):
            self.register(theme)
        if default_scheme not in self._themes:
            raise KeyError(f"No theme registered for default scheme '{default_scheme}'")
        self._default_scheme = default_scheme

    def register(self, theme: Theme) -> None:
        self._themes[theme.scheme] = theme

    def schemes(self) -> list[str]:
        return sorted(self._themes)

    def resolve(self, scheme: str | None = None) -> Theme:
        key = (scheme or self._default_scheme).strip().lower()
        return self._themes.get(key) or self._themes[self._default_scheme]

    def widget_theme(self, scheme: str | None = None) -> Dict[str, Any]:
        """Full widget ``theme`` option for ``scheme``."""

        theme = self.resolve(scheme)
        return {"colorScheme": theme.scheme, **theme.widget_config()}

    def apply_to_application(self, scheme: str | None = None, *, app: Any | None = None) -> Theme:
        resolved = self.resolve(scheme)
        try:  # pragma: no cover - Qt optional in CI
            from PySide6.QtGui import QColor, QPalette  # type: ignore
            from PySide6.QtWidgets import QApplication  # type: ignore
        except Exception:  # pragma: no cover - headless fallback
            return resolved

        qt_app: Any = app if app is not None else QApplication.instance()
        if qt_app is None:
            return resolved

        palette_cls = cast(Any, QPalette)
        palette = palette_cls()
        roles = (
            (palette_cls.Window, "background"),
            (palette_cls.WindowText, "foreground"),
            (palette_cls.Base, "surface"),
            (palette_cls.AlternateBase, "surface_alt"),
            (palette_cls.Text, "foreground"),
            (palette_cls.Button, "surface"),
            (palette_cls.ButtonText, "foreground"),
            (palette_cls.Highlight, "selection"),
            (palette_cls.HighlightedText, "selection_foreground"),
            (palette_cls.Link, "link"),
        )
        for role, key in roles:
            palette.setColor(role, QColor(*resolved.color(key)))
        qt_app.setPalette(palette)

        style_name = resolved.metadata.get("qt_style")
        if style_name:
            qt_app.setStyle(style_name)
        LOGGER.debug("Applied %s theme to application", resolved.scheme)
        return resolved


theme_manager = ThemeManager()


__all__ = ["ThemeManager", "build_dark_theme", "build_light_theme", "theme_manager"]
