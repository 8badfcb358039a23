from __future__ import annotations

import json

from typer.testing import CliRunner

from snaproom import cli


def test_config_command_prints_resolved_settings(isolated_env, monkeypatch) -> None:
    monkeypatch.setenv("SNAPROOM_PORT", "4321")
    result = CliRunner().invoke(cli.app, ["config"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["port"] == 4321
    assert payload["host"] == "0.0.0.0"


def test_serve_passes_settings_to_uvicorn(isolated_env, monkeypatch) -> None:
    calls = {}

    def fake_run(app_path, **kwargs):
        calls["app"] = app_path
        calls.update(kwargs)

    monkeypatch.setattr("uvicorn.run", fake_run)
    result = CliRunner().invoke(cli.app, ["serve", "--port", "9001"])

    assert result.exit_code == 0, result.output
    assert calls["app"] == cli.APP_FACTORY
    assert calls["factory"] is True
    assert calls["port"] == 9001
    assert calls["host"] == "0.0.0.0"
    assert calls["log_level"] == "info"
