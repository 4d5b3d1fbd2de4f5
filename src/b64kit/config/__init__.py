"""Configuration management for b64kit."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import B64KitConfig
from .resolver import (
    ENV_PREFIX,
    assign_dotted,
    flatten_for_env,
    parse_env_overrides,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.b64kit/config.yaml")
CONFIG_PATH_ENV = "B64KIT_CONFIG"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # b64kit configuration file
    # Generated automatically; manage via `b64kit config edit` or `b64kit config set`.
    """
)


class ConfigManager:
    """Load and persist the YAML configuration file, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialise the manager.

        Args:
            config_path: Explicit configuration file. Defaults to ``$B64KIT_CONFIG``
                or ``~/.b64kit/config.yaml``.
            env: Environment mapping used for overrides; ``os.environ`` by default.
        """
        self._env = env if env is not None else os.environ
        if config_path is None:
            configured = self._env.get(CONFIG_PATH_ENV)
            config_path = Path(configured) if configured else DEFAULT_CONFIG_PATH
        self._config_path = config_path.expanduser()

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> B64KitConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Highest-precedence overrides, dotted keys allowed.
            include_env: Whether ``B64KIT__`` environment variables apply.
            ensure_file: Create the configuration file with defaults when missing.
            env_overrides: Environment mapping to use instead of the manager's.

        Raises:
            ConfigError: If the file cannot be parsed or values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data: Mapping[str, str] | None = None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=B64KitConfig(),
            file_overrides=self._read_file(),
            env_overrides=parse_env_overrides(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: B64KitConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, B64KitConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def set_value(self, key: str, value: Any) -> B64KitConfig:
        """Validate and persist a single dotted ``key`` in the configuration file.

        Returns:
            B64KitConfig: Configuration resolved from the updated file contents.

        Raises:
            ConfigError: If the key is malformed or the value is invalid.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must specify a dotted path such as 'encoder.chunk_size_bytes'.")

        file_data = self._read_file()
        assign_dotted(file_data, segments, value)
        resolved = resolve_with_precedence(defaults=B64KitConfig(), file_overrides=file_data)
        self._write_file(file_data)
        return resolved

    def save_text(self, text: str) -> B64KitConfig:
        """Validate YAML ``text`` and persist it as the configuration file.

        Returns:
            B64KitConfig: Configuration resolved from ``text``.

        Raises:
            ConfigError: If ``text`` is not a YAML mapping or holds invalid values.
        """
        data = _parse_mapping(text)
        resolved = resolve_with_precedence(defaults=B64KitConfig(), file_overrides=data)
        self._write_file(data)
        return resolved

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(B64KitConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        return _parse_mapping(self._config_path.read_text(encoding="utf-8"))

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )


def _parse_mapping(text: str) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must contain a mapping at the top level.")
    return raw


__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "B64KitConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
