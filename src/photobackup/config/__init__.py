"""Configuration management for photobackup.

Settings are layered, later layers winning: model defaults, the flat
``~/.photobackuprc.yaml`` option file, ``~/.photobackup/config.yaml``,
``PHOTOBACKUP__`` environment variables, and finally command line options.
"""

from __future__ import annotations

import logging
import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .legacy import LEGACY_CONFIG_PATH, translate_options
from .models import DEFAULT_INDEX_FILE, PhotoBackupConfig
from .resolver import Layer, assign_nested, resolve_layers

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.photobackup/config.yaml")
ENV_PREFIX = "PHOTOBACKUP__"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # photobackup configuration file
    # Keys mirror `photobackup config view`; manage via `photobackup config set`.
    """
)


class ConfigManager:
    """Read, merge, and update photobackup settings files."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        legacy_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._legacy_path = (legacy_path or LEGACY_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def legacy_path(self) -> Path:
        return self._legacy_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = False,
    ) -> PhotoBackupConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``PHOTOBACKUP__`` environment variables apply.
            ensure_file: Create a default ``config.yaml`` when missing.

        Raises:
            ConfigError: If a file cannot be parsed or values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        layers: list[Layer] = [
            ("option file", self.read_legacy()),
            ("file", self.read_settings()),
        ]
        if include_env:
            layers.append(("environment", self._env_overrides()))
        layers.append(("cli", cli_overrides))
        return resolve_layers(layers)

    def read_settings(self) -> dict[str, Any]:
        """Return the raw contents of ``config.yaml``."""
        return _read_mapping(self._config_path)

    def read_legacy(self) -> dict[str, Any]:
        """Return the option file translated to ``config.yaml`` keys."""
        options = _read_mapping(self._legacy_path)
        if not options:
            return {}
        LOGGER.debug("Applying options from %s", self._legacy_path)
        return translate_options(options, source=self._legacy_path)

    def set_value(self, key: str, value: Any) -> None:
        """Validate and persist ``value`` at dotted ``key`` in ``config.yaml``.

        Raises:
            ConfigError: If ``key`` is empty or the result does not validate.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must specify a dotted path such as 'scan.threads'.")
        settings = self.read_settings()
        assign_nested(settings, segments, value)
        resolve_layers([("file", settings)])
        self._write(settings)

    def migrate_legacy(self) -> dict[str, Any]:
        """Fold the option file into ``config.yaml``.

        Values already present in ``config.yaml`` are kept.

        Returns:
            dict[str, Any]: The settings written to ``config.yaml``.

        Raises:
            ConfigError: If there is no option file or the merge is invalid.
        """
        if not self._legacy_path.exists():
            raise ConfigError("No option file to migrate.", source=self._legacy_path)
        legacy = self.read_legacy()
        settings = self.read_settings()
        resolve_layers([("option file", legacy), ("file", settings)])
        merged = dict(legacy)
        for section, value in settings.items():
            assign_nested(merged, [section], value)
        self._write(merged)
        return merged

    def ensure_exists(self) -> Path:
        """Create an empty ``config.yaml`` if it does not exist.

        The file starts without values so that it never masks the option file.
        """
        if not self._config_path.exists():
            self._write({})
        return self._config_path

    def read_text(self) -> str:
        """Return the current ``config.yaml`` contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _write(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False) if data else ""
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in self._env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                value = raw_value
            assign_nested(overrides, path, value)
        return overrides


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML: {exc}", source=path) from exc
    if not isinstance(raw, dict):
        raise ConfigError("Expected a mapping at the top level.", source=path)
    return raw


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_INDEX_FILE",
    "ENV_PREFIX",
    "LEGACY_CONFIG_PATH",
    "PhotoBackupConfig",
    "resolve_layers",
    "translate_options",
]
