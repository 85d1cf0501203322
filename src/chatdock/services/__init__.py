"""Service layer helpers (settings persistence)."""

from .settings import DEFAULT_STARTER_PROMPTS, Settings, SettingsStore

__all__ = ["DEFAULT_STARTER_PROMPTS", "Settings", "SettingsStore"]
