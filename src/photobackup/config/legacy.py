"""Support for the flat ``~/.photobackuprc.yaml`` option file.

The option file predates ``config.yaml``. It holds the command line options
by name, with the S3 credentials grouped under ``aws``::

    :directory: [/home/me/Pictures]
    :threads: 8
    :uniq_dir: /backup/uniq
    :s3path: s3://photos/uniq
    :aws:
      :region: eu-west-1

Keys may be written with or without the leading colon.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigError
from .resolver import expand_dotted

LEGACY_CONFIG_PATH = Path("~/.photobackuprc.yaml")

OPTION_KEYS: dict[str, str] = {
    "threads": "scan.threads",
    "filename": "scan.index_file",
    "rescan": "scan.rescan",
    "only_images": "scan.only_images",
    "uniq_dir": "trees.uniq_dir",
    "by_date_dir": "trees.by_date_dir",
    "s3path": "remote.s3_path",
}
AWS_KEYS: dict[str, str] = {
    "access_key_id": "remote.access_key_id",
    "secret_access_key": "remote.secret_access_key",
    "region": "remote.region",
}


def _option_name(key: Any) -> str:
    return str(key).lstrip(":")


def _directories(value: Any, source: Optional[Path]) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError("'directory' must be a path or a list of paths.", source=source)


def translate_options(
    options: Mapping[Any, Any], *, source: Optional[Path] = None
) -> dict[str, Any]:
    """Map option-file entries onto nested ``PhotoBackupConfig`` keys.

    Args:
        options: Parsed option file contents.
        source: File the options were read from, used in error messages.

    Returns:
        dict[str, Any]: Nested overrides suitable for ``resolve_layers``.

    Raises:
        ConfigError: If an option is unknown or has the wrong shape.
    """
    overrides: dict[str, Any] = {}
    for raw_key, value in options.items():
        name = _option_name(raw_key)
        if name == "directory":
            overrides["directories"] = _directories(value, source)
        elif name == "verbose":
            if value:
                overrides["logging.level"] = "DEBUG"
        elif name == "aws":
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise ConfigError("'aws' must be a mapping of credentials.", source=source)
            for aws_key, aws_value in value.items():
                target = AWS_KEYS.get(_option_name(aws_key))
                if target is None:
                    raise ConfigError(f"Unknown aws option {aws_key!r}.", source=source)
                overrides[target] = aws_value
        elif name in OPTION_KEYS:
            overrides[OPTION_KEYS[name]] = value
        else:
            raise ConfigError(f"Unknown option {raw_key!r}.", source=source)
    return expand_dotted(overrides, source_name="option file")


__all__ = ["LEGACY_CONFIG_PATH", "translate_options"]
