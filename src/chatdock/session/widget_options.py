"""Option payload handed to the embedded chat widget on mount."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from ..theme import ThemeManager, theme_manager

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..services.settings import Settings


def build_widget_options(
    settings: "Settings",
    scheme: str | None = None,
    *,
    themes: ThemeManager | None = None,
) -> Dict[str, Any]:
    """Build widget options for ``scheme`` (defaults to the configured scheme).

    Credential and event callbacks are wired by the host separately; this
    payload only carries presentation options.
    """

    manager = themes or theme_manager
    prompts = [
        {key: str(value) for key, value in prompt.items() if key in ("label", "prompt", "icon")}
        for prompt in settings.starter_prompts
        if isinstance(prompt, dict) and prompt.get("prompt")
    ]
    return {
        "theme": manager.widget_theme(scheme or settings.color_scheme),
        "startScreen": {
            "greeting": settings.greeting,
            "prompts": prompts,
        },
        "composer": {
            "placeholder": settings.composer_placeholder,
            "attachments": {"enabled": settings.file_upload_enabled},
        },
        "threadItemActions": {"feedback": False},
    }


__all__ = ["build_widget_options"]
