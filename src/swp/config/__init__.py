"""Configuration management for swp."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import CLIOptions, LargeFileSettings, LoggingSettings, SwpConfig
from .resolver import (
    assign_path,
    env_overrides_from,
    flatten_for_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.swp/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # swp configuration file
    # Generated automatically; manage via `swp config set` or `swp config edit`.
    """
)


class ConfigManager:
    """Read, write, and resolve the swp configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

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
    ) -> SwpConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``SWP__`` environment variables are applied.
            ensure_file: Create the configuration file with defaults if missing.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Raises:
            ConfigError: If the file is malformed or the merged values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data = None
        if include_env:
            env_data = env_overrides_from(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=SwpConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty if there is no file)."""
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def set_value(self, key: str, value: Any) -> SwpConfig:
        """Persist ``value`` under the dotted ``key`` after validating the result.

        Raises:
            ConfigError: If the key is empty or the resulting configuration is invalid.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must be a dotted path such as 'large_files.size_threshold'.")

        data = self.load_file_overrides()
        assign_path(data, segments, value, source_name="file")
        config = resolve_with_precedence(defaults=SwpConfig(), file_overrides=data)
        self.save(data)
        return config

    def save(self, config: SwpConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk with the generated header and a timestamp."""
        if isinstance(config, SwpConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)

        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Create the configuration file with defaults if it does not exist."""
        if not self._config_path.exists():
            self.save(SwpConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "SwpConfig",
    "LargeFileSettings",
    "LoggingSettings",
    "CLIOptions",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
