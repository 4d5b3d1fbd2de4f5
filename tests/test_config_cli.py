"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from b64kit.cli import cli
from b64kit.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    env.pop("B64KIT_CONFIG", None)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".b64kit" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "encoder:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "encoder.chunk_size_bytes", "--value", "65536"], env=env
    )

    assert result.exit_code == 0
    assert "65536" in result.output
    assert "Updated encoder.chunk_size_bytes." in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path))
    config = manager.load(include_env=False)
    assert config.encoder.chunk_size_bytes == 65536


def test_config_set_same_value_reports_no_changes(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "history.max_entries", "--value", "10"], env=env
    )

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_invalid_value_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "history.max_entries", "--value", "0"], env=env
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("name_prefix: decoded", "name_prefix: payload")

    monkeypatch.setattr("b64kit.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()

    config = manager.load(include_env=False)
    assert config.export.name_prefix == "payload"


def test_config_edit_rejects_invalid_values(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()
    original = manager.read_text()

    monkeypatch.setattr(
        "b64kit.cli.click.edit",
        lambda text, **_: text.replace("detect_pdf: false", "detect_pdf: sometimes"),
    )

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code != 0
    assert manager.read_text() == original
