"""Theme module for host and widget color schemes."""

from .models import ColorScheme, ColorTuple, Theme, normalize_color, to_hex
from .manager import ThemeManager, build_dark_theme, build_light_theme, theme_manager

__all__ = [
    "ColorScheme",
    "ColorTuple",
    "Theme",
    "ThemeManager",
    "build_dark_theme",
    "build_light_theme",
    "normalize_color",
    "theme_manager",
    "to_hex",
]
