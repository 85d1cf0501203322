"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

_CHATDOCK_ENV = (
    "CHATDOCK_WORKFLOW_ID",
    "CHATDOCK_SESSION_ENDPOINT",
    "CHATDOCK_COLOR_SCHEME",
    "CHATDOCK_AUTO_START_TEXT",
    "CHATDOCK_DEBUG_LOGGING",
    "CHATDOCK_FILE_UPLOAD",
    "CHATDOCK_REQUEST_TIMEOUT",
    "CHATDOCK_SETTINGS_PATH",
    "CHATDOCK_DEBUG",
)


@pytest.fixture(autouse=True)
def _isolate_chatdock_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _CHATDOCK_ENV:
        monkeypatch.delenv(name, raising=False)
