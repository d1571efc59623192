"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from photobackup.cli import cli
from photobackup.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".photobackup" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "scan:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "scan.threads", "--value", "3"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0
    assert "Updated scan.threads" in result.output

    config = ConfigManager(
        config_path=_config_path(tmp_path), legacy_path=tmp_path / "absent.yaml"
    ).load(include_env=False)
    assert config.scan.threads == 3


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "scan.threads", "--value", "zero"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_config_migrate_copies_option_file(tmp_path: Path) -> None:
    runner = CliRunner()
    (tmp_path / ".photobackuprc.yaml").write_text(
        ":directory:\n  - /photos\n:threads: 4\n:s3path: s3://bucket/uniq\n", encoding="utf-8"
    )

    result = runner.invoke(cli, ["config", "migrate"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Migrated" in result.output
    settings = ConfigManager(
        config_path=_config_path(tmp_path), legacy_path=tmp_path / "absent.yaml"
    ).load(include_env=False)
    assert settings.directories == ["/photos"]
    assert settings.scan.threads == 4
    assert settings.remote.s3_path == "s3://bucket/uniq"


def test_config_migrate_without_option_file_fails(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "migrate"], env=_env_with_home(tmp_path))

    assert result.exit_code == 1
    assert "No option file" in result.output
