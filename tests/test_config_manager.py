"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from b64kit.config import (
    B64KitConfig,
    ConfigError,
    ConfigManager,
    flatten_for_env,
    resolve_with_precedence,
)
from b64kit.config.resolver import parse_env_overrides


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("B64KIT_CONFIG", raising=False)
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".b64kit" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "b64kit configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, B64KitConfig)
    assert config.encoder.chunk_size_bytes == 1_048_576


def test_config_path_env_overrides_default(tmp_path: Path) -> None:
    custom = tmp_path / "custom.yaml"

    manager = ConfigManager(env={"B64KIT_CONFIG": str(custom)})

    assert manager.config_path == custom


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"export": {"name_prefix": "payload"}, "encoder": {"chunk_size_bytes": 4096}})

    env = {"B64KIT__ENCODER__CHUNK_SIZE_BYTES": "8192", "B64KIT__SNIFFER__DETECT_PDF": "true"}
    cli = {"encoder.chunk_size_bytes": 300}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.export.name_prefix == "payload"
    assert config.sniffer.detect_pdf is True
    # CLI overrides take precedence over environment
    assert config.encoder.chunk_size_bytes == 300


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=B64KitConfig(),
            file_overrides={"encoder": {"turbo": True}},
        )


def test_set_value_persists_nested_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    resolved = manager.set_value("history.max_entries", 25)

    assert resolved.history.max_entries == 25
    assert manager.load_file_overrides()["history"]["max_entries"] == 25


def test_set_value_rejects_invalid_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.read_text()

    with pytest.raises(ConfigError):
        manager.set_value("export.conflict_resolution", "skip")
    with pytest.raises(ConfigError):
        manager.set_value(" . ", 1)

    assert manager.read_text() == before


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(B64KitConfig())

    assert flat["B64KIT__ENCODER__CHUNK_SIZE_BYTES"] == "1048576"
    assert flat["B64KIT__SNIFFER__DETECT_PDF"] == "false"
    assert flat["B64KIT__EXPORT__DIRECTORY"] == "null"

    restored = resolve_with_precedence(
        defaults=B64KitConfig(), env_overrides=parse_env_overrides(flat)
    )
    assert restored == B64KitConfig()


def test_parse_env_overrides_ignores_unprefixed_keys() -> None:
    overrides = parse_env_overrides({"PATH": "/bin", "B64KIT__CLI__QUIET_DEFAULT": "yes"})

    assert overrides == {"cli": {"quiet_default": True}}


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=B64KitConfig(),
            file_overrides={"encoder": {"chunk_size_bytes": "not-an-int"}},
        )


def test_save_text_validates_before_writing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.read_text()

    for text in ("- a list", "encoder: [unclosed", "history:\n  max_entries: 0\n"):
        with pytest.raises(ConfigError):
            manager.save_text(text)
    assert manager.read_text() == before

    resolved = manager.save_text("export:\n  name_prefix: clip\n")

    assert resolved.export.name_prefix == "clip"
    assert manager.load(include_env=False).export.name_prefix == "clip"
    assert manager.read_text().startswith("# b64kit configuration file")
