"""Errors raised while reading or validating photobackup settings."""

from __future__ import annotations

from pathlib import Path


class ConfigError(Exception):
    """Raised when settings cannot be read, translated, or validated.

    Attributes:
        source: Settings file the problem was found in, when known.
    """

    def __init__(self, message: str, *, source: Path | None = None) -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source is not None else message)
