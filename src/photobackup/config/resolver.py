"""Merging of layered setting sources into a validated ``PhotoBackupConfig``."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Iterable, Optional, Tuple

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PhotoBackupConfig

Layer = Tuple[str, Optional[Mapping[str, Any]]]


def assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` at ``path`` inside ``target``, merging nested mappings.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = node[segment] = {}
        if not isinstance(existing, dict):
            raise ConfigError(f"Cannot assign {'.'.join(path)}: '{segment}' is not a mapping.")
        node = existing
    leaf = path[-1]
    current = node.get(leaf)
    if isinstance(value, dict) and isinstance(current, dict):
        node[leaf] = _deep_merge(current, value)
    else:
        node[leaf] = value


def expand_dotted(source: Mapping[str, Any], *, source_name: str = "settings") -> dict[str, Any]:
    """Turn ``{"scan.threads": 4}`` style keys into nested mappings.

    Raises:
        ConfigError: If ``source`` is not a mapping or holds non-string keys.
    """
    if not isinstance(source, Mapping):
        raise ConfigError(f"{source_name.capitalize()} must be a mapping.")
    nested: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} keys must be strings, got {key!r}.")
        if isinstance(value, Mapping):
            value = expand_dotted(value, source_name=source_name)
        assign_nested(nested, key.split("."), value)
    return nested


def resolve_layers(layers: Iterable[Layer]) -> PhotoBackupConfig:
    """Apply ``layers`` in order over the defaults; later layers win.

    Each layer is a ``(name, overrides)`` pair. ``None`` or empty overrides
    are skipped.

    Raises:
        ConfigError: If a layer is malformed or the merged values are invalid.
    """
    merged = PhotoBackupConfig().model_dump(mode="python")
    for name, overrides in layers:
        if overrides:
            merged = _deep_merge(merged, expand_dotted(overrides, source_name=f"{name} settings"))

    try:
        return PhotoBackupConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["Layer", "assign_nested", "expand_dotted", "resolve_layers"]
