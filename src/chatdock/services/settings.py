"""Settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..session.broker import BrokerSettings, is_workflow_configured

__all__ = [
    "Settings",
    "SettingsStore",
    "DEFAULT_STARTER_PROMPTS",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".chatdock"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "CHATDOCK_WORKFLOW_ID": "workflow_id",
    "CHATDOCK_SESSION_ENDPOINT": "session_endpoint",
    "CHATDOCK_COLOR_SCHEME": "color_scheme",
    "CHATDOCK_AUTO_START_TEXT": "auto_start_text",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "CHATDOCK_DEBUG_LOGGING": "debug_logging",
    "CHATDOCK_FILE_UPLOAD": "file_upload_enabled",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "CHATDOCK_REQUEST_TIMEOUT": "request_timeout",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_COLOR_SCHEMES = ("light", "dark")

DEFAULT_STARTER_PROMPTS: tuple[dict[str, str], ...] = (
    {"label": "Generate a theme", "prompt": "Generate a color theme for my site", "icon": "sparkle"},
    {"label": "Switch to dark", "prompt": "Switch the page to dark mode", "icon": "circle-question"},
)


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    workflow_id: str = ""
    session_endpoint: str = "http://localhost:3000/api/create-session"
    file_upload_enabled: bool = True
    request_timeout: float = 30.0
    color_scheme: str = "light"
    auto_start_text: str = ""
    greeting: str = "How can I help you today?"
    composer_placeholder: str = "Ask anything..."
    starter_prompts: list[dict[str, str]] = field(
        default_factory=lambda: [dict(prompt) for prompt in DEFAULT_STARTER_PROMPTS]
    )
    default_headers: dict[str, str] = field(default_factory=dict)
    debug_logging: bool = False

    @property
    def workflow_configured(self) -> bool:
        return is_workflow_configured(self.workflow_id)

    def broker_settings(self) -> BrokerSettings:
        return BrokerSettings(
            endpoint=self.session_endpoint,
            workflow_id=self.workflow_id,
            file_upload_enabled=self.file_upload_enabled,
            request_timeout=self.request_timeout,
            default_headers=dict(self.default_headers) or None,
        )


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            LOGGER.debug("Settings loaded from %s (fields=%s)", self._path, sorted(data))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")
        settings = self._apply_env_overrides(settings)
        return _normalize_scheme(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {item.name for item in fields(Settings)}
        filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _normalize_scheme(settings: Settings) -> Settings:
    scheme = (settings.color_scheme or "").strip().lower()
    if scheme in _COLOR_SCHEMES:
        return settings if scheme == settings.color_scheme else replace(settings, color_scheme=scheme)
    LOGGER.warning("Unknown color scheme %r; falling back to light", settings.color_scheme)
    return replace(settings, color_scheme="light")
