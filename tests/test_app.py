"""Tests covering the application bootstrap helpers."""

from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path
from typing import Any

import pytest

from chatdock import app
from chatdock.services.settings import Settings, SettingsStore

from helpers import RecordingHandler, build_broker


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(app.sys, "argv", ["chatdock"])


def test_drain_event_loop_cancels_pending_tasks() -> None:
    loop = asyncio.new_event_loop()
    cancelled = {"called": False}

    async def pending() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled["called"] = True
            raise

    loop.create_task(pending())

    try:
        app._drain_event_loop(loop)
        assert cancelled["called"] is True
    finally:
        loop.close()


def test_drain_event_loop_ignores_closed_loop() -> None:
    loop = asyncio.new_event_loop()
    loop.close()

    app._drain_event_loop(loop)


def test_coerce_cli_overrides_casts_types() -> None:
    overrides = app._coerce_cli_overrides(
        [
            "workflow_id=wf_cli",
            "file_upload_enabled=off",
            "request_timeout=42.25",
            'starter_prompts=[{"label": "Hi", "prompt": "Say hi"}]',
            'default_headers={"X-Env": "dev"}',
        ]
    )

    assert overrides["workflow_id"] == "wf_cli"
    assert overrides["file_upload_enabled"] is False
    assert overrides["request_timeout"] == pytest.approx(42.25)
    assert overrides["starter_prompts"] == [{"label": "Hi", "prompt": "Say hi"}]
    assert overrides["default_headers"] == {"X-Env": "dev"}


@pytest.mark.parametrize(
    "entry",
    ["not_a_setting=value", "workflow_id", "=value", "debug_logging=maybe", "starter_prompts={}"],
)
def test_coerce_cli_overrides_rejects_bad_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        app._coerce_cli_overrides([entry])


def test_parse_bool() -> None:
    assert app._parse_bool(" YES ") is True
    assert app._parse_bool("disabled") is False
    with pytest.raises(ValueError):
        app._parse_bool("perhaps")


def test_dump_settings_reports_configuration(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHATDOCK_WORKFLOW_ID", "wf_env")
    store = SettingsStore(tmp_path / "settings.json")
    buffer = io.StringIO()

    app._dump_settings(Settings(workflow_id="wf_env"), store, overrides={"color_scheme": "dark"}, stream=buffer)

    payload = json.loads(buffer.getvalue())
    assert payload["settings"]["workflow_id"] == "wf_env"
    assert payload["meta"]["path"] == str(tmp_path / "settings.json")
    assert payload["meta"]["workflow_configured"] is True
    assert payload["meta"]["cli_overrides"] == ["color_scheme"]
    assert "CHATDOCK_WORKFLOW_ID" in payload["meta"]["environment_variables"]


def test_main_dump_settings_applies_cli_overrides(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(Settings(workflow_id="wf_file"))

    app.main(["--settings-path", str(path), "--dump-settings", "--set", "color_scheme=dark"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["settings"]["workflow_id"] == "wf_file"
    assert payload["settings"]["color_scheme"] == "dark"


def test_main_rejects_malformed_override(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["--settings-path", str(tmp_path / "settings.json"), "--set", "nonsense"])

    assert excinfo.value.code == 2


@pytest.mark.parametrize(("ok", "code"), [(True, 0), (False, 1)])
def test_main_check_session_exit_code(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, ok: bool, code: int
) -> None:
    seen: list[Settings] = []

    async def _fake_check(settings: Settings, **kwargs: Any) -> bool:
        seen.append(settings)
        return ok

    monkeypatch.setattr(app, "check_session", _fake_check)

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--settings-path", str(tmp_path / "settings.json"), "--check-session"])

    assert excinfo.value.code == code
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_check_session_reports_success() -> None:
    handler = RecordingHandler(200, {"client_secret": "ek_check"})
    buffer = io.StringIO()

    ok = await app.check_session(Settings(), broker=build_broker(handler), stream=buffer)

    assert ok is True
    assert json.loads(buffer.getvalue()) == {"ok": True}
    assert handler.calls == 1


@pytest.mark.asyncio
async def test_check_session_reports_failure_without_secret_leak() -> None:
    buffer = io.StringIO()

    ok = await app.check_session(
        Settings(),
        broker=build_broker(RecordingHandler(500, {"error": "rate_limited"})),
        stream=buffer,
    )

    assert ok is False
    assert json.loads(buffer.getvalue()) == {
        "ok": False,
        "error_code": "http_error",
        "message": "rate_limited",
    }


@pytest.mark.asyncio
async def test_check_session_unconfigured_workflow() -> None:
    handler = RecordingHandler(200, {"client_secret": "never"})
    buffer = io.StringIO()

    ok = await app.check_session(Settings(), broker=build_broker(handler, workflow_id=""), stream=buffer)

    assert ok is False
    assert json.loads(buffer.getvalue())["error_code"] == "workflow_not_configured"
    assert handler.calls == 0
