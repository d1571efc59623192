"""Command line interface for photobackup."""

from __future__ import annotations

import difflib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import click
import yaml
from rich.console import Console
from rich.filesize import decimal
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.syntax import Syntax
from rich.table import Table

from photobackup.config import ConfigError, ConfigManager, PhotoBackupConfig
from photobackup.index import ContentIndexError, IndexContractError
from photobackup.library import PhotoLibrary
from photobackup.sync import RemoteSyncError
from photobackup.workers import ProgressCallback

console = Console()


def _configure_logging(level: str) -> None:
    """Route log records through rich at the requested level.

    Raises:
        click.ClickException: If ``level`` is not a known logging level.
    """
    try:
        logging.basicConfig(
            level=level.upper(),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, show_path=False)],
            force=True,
        )
    except ValueError as exc:
        raise click.ClickException(f"Invalid logging level {level!r}") from exc


def _load_config(cli_overrides: dict[str, Any]) -> PhotoBackupConfig:
    try:
        return ConfigManager().load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _open_library(config: PhotoBackupConfig) -> PhotoLibrary:
    try:
        return PhotoLibrary(config)
    except ContentIndexError as exc:
        raise click.ClickException(str(exc)) from exc


@contextmanager
def _progress(description: str, enabled: bool) -> Iterator[Optional[ProgressCallback]]:
    """Yield a progress callback backed by a rich progress bar."""
    if not enabled:
        yield None
        return

    columns = (
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )
    with Progress(*columns, console=console, transient=True) as progress:
        task = progress.add_task(description, total=None)

        def _update(completed: int, total: int) -> None:
            progress.update(task, completed=completed, total=total)

        yield _update


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _emit_errors(title: str, errors: list[str]) -> None:
    if not errors:
        return
    console.print(f"[red]{title}:[/red]")
    for entry in errors:
        console.print(f"  - {entry}")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="photobackup")
def cli() -> None:
    """Photobackup indexes photos by content hash, builds hash and date link
    trees, and mirrors the hash tree to S3."""


@cli.command()
@click.option(
    "-d",
    "--directory",
    "directories",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help="Directory to scan (can be given multiple times).",
)
@click.option(
    "-u",
    "--create-uniq-hash-directory",
    "uniq_dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Create a hard link tree of unique photos at this directory.",
)
@click.option(
    "-b",
    "--create-by-date-directory",
    "by_date_dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Create a symlink tree of the unique photos by capture date at this directory.",
)
@click.option("-r", "--rescan", is_flag=True, help="Discard the existing index.")
@click.option("-i", "--only-images", is_flag=True, help="Skip non-image files.")
@click.option("-t", "--threads", type=click.IntRange(min=1), help="Worker threads to use.")
@click.option("-v", "--verbose", is_flag=True, help="Log additional information.")
@click.option("--quiet", is_flag=True, help="Hide progress bars.")
@click.option("-f", "--use-file", "index_file", type=str, help="File used for the photo index.")
@click.option("-a", "--access-key", type=str, help="Access key for the S3 backup.")
@click.option("-s", "--secret-key", type=str, help="Secret key for the S3 backup.")
@click.option("--region", type=str, help="AWS region of the S3 bucket.")
@click.option("-p", "--s3-path", type=str, help="Backup destination as s3://bucket/path.")
def backup(
    directories: tuple[str, ...],
    uniq_dir: Optional[str],
    by_date_dir: Optional[str],
    rescan: bool,
    only_images: bool,
    threads: Optional[int],
    verbose: bool,
    quiet: bool,
    index_file: Optional[str],
    access_key: Optional[str],
    secret_key: Optional[str],
    region: Optional[str],
    s3_path: Optional[str],
) -> None:
    """Scan directories, update the index, build link trees, and sync to S3."""
    overrides: dict[str, Any] = {
        key: value
        for key, value in {
            "scan.rescan": True if rescan else None,
            "scan.only_images": True if only_images else None,
            "scan.threads": threads,
            "scan.index_file": index_file,
            "trees.uniq_dir": uniq_dir,
            "trees.by_date_dir": by_date_dir,
            "remote.access_key_id": access_key,
            "remote.secret_access_key": secret_key,
            "remote.region": region,
            "remote.s3_path": s3_path,
        }.items()
        if value is not None
    }
    if directories:
        overrides["directories"] = list(directories)
    if verbose:
        overrides["logging.level"] = "DEBUG"

    config = _load_config(overrides)
    _configure_logging(config.logging.level)

    if not config.directories:
        raise click.UsageError("You must specify at least one directory.")
    if config.trees.by_date_dir and not config.trees.uniq_dir:
        raise click.UsageError("--create-by-date-directory requires --create-uniq-hash-directory.")

    library = _open_library(config)
    show_progress = not quiet

    scan_errors: list[str] = []
    for directory in config.directories:
        with _progress(f"Scanning {directory}", show_progress) as progress:
            try:
                result = library.add_directory(Path(directory), progress=progress)
            except FileNotFoundError as exc:
                raise click.ClickException(str(exc)) from exc
        scan_errors.extend(result.errors)
    _emit_errors("Files skipped during scan", scan_errors)
    library.persist()

    if config.trees.uniq_dir:
        with _progress("Building hash tree", show_progress) as progress:
            hash_tree = library.build_hash_tree(Path(config.trees.uniq_dir), progress=progress)
        _emit_errors("Hash tree links failed", hash_tree.result.failed)
        library.persist()
        console.print(
            _format_summary_line(
                "Hash tree",
                hash_tree.root,
                {
                    "created": hash_tree.result.created,
                    "skipped": hash_tree.result.skipped,
                    "total": hash_tree.result.total,
                },
            )
        )

        if config.trees.by_date_dir:
            with _progress("Building date tree", show_progress) as progress:
                date_result = library.build_date_tree(
                    hash_tree, Path(config.trees.by_date_dir), progress=progress
                )
            _emit_errors("Date tree links failed", date_result.failed)
            console.print(
                _format_summary_line(
                    "Date tree",
                    date_result.root,
                    {
                        "created": date_result.created,
                        "skipped": date_result.skipped,
                        "total": date_result.total,
                    },
                )
            )

    console.print(
        f"Total size: {decimal(library.total_size())}, "
        f"deduplicated size: {decimal(library.deduped_size())}"
    )

    if config.remote.s3_path and config.trees.uniq_dir:
        with _progress("Uploading", show_progress) as progress:
            try:
                sync_result = library.sync(
                    Path(config.trees.uniq_dir), config.remote.s3_path, progress=progress
                )
            except (RemoteSyncError, FileNotFoundError) as exc:
                raise click.ClickException(str(exc)) from exc
        console.print(
            _format_summary_line(
                "Sync",
                sync_result.target,
                {"uploaded": len(sync_result.uploaded), "skipped": sync_result.skipped},
            )
        )
        if sync_result.failed:
            _emit_errors("Uploads failed", sync_result.failed)
            raise click.ClickException(f"{len(sync_result.failed)} file(s) failed to upload.")
    elif config.remote.s3_path:
        console.print("[yellow]Skipping S3 sync: it requires a unique hash directory.[/yellow]")


@cli.command()
@click.option("-f", "--use-file", "index_file", type=str, help="File used for the photo index.")
def stats(index_file: Optional[str]) -> None:
    """Show size statistics for the persisted index."""
    overrides = {"scan.index_file": index_file} if index_file else {}
    config = _load_config(overrides)
    library = _open_library(config)
    records = library.index.records()

    table = Table(title=f"Index {library.index_file}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Distinct files", str(len(records)))
    table.add_row("Known paths", str(sum(len(record.paths) for record in records)))
    table.add_row("Linked in hash tree", str(sum(1 for r in records if r.canonical_link_path)))
    table.add_row("Total size", decimal(library.total_size()))
    table.add_row("Deduplicated size", decimal(library.deduped_size()))
    console.print(table)


@cli.command()
@click.option("--hash", "digest", type=str, help="Content hash to look up.")
@click.option("--path", type=str, help="File path to look up.")
@click.option("-f", "--use-file", "index_file", type=str, help="File used for the photo index.")
def lookup(digest: Optional[str], path: Optional[str], index_file: Optional[str]) -> None:
    """Print the index entry for a hash or a path (exactly one)."""
    overrides = {"scan.index_file": index_file} if index_file else {}
    library = _open_library(_load_config(overrides))
    try:
        record = library.lookup(hash=digest, path=path)
    except IndexContractError as exc:
        raise click.UsageError("Specify exactly one of --hash or --path.") from exc

    if record is None:
        raise click.ClickException(f"No index entry for {digest or path}")
    console.print_json(data=record.model_dump(mode="json", by_alias=True))


@cli.group()
def config() -> None:
    """Inspect and update photobackup settings files."""


def _show_settings_diff(manager: ConfigManager, before: list[str]) -> None:
    after = manager.read_text().splitlines()
    name = manager.config_path.name
    diff = difflib.unified_diff(
        before, after, fromfile=f"{name} (before)", tofile=f"{name} (after)", lineterm=""
    )
    text = "\n".join(diff)
    if text:
        console.print(Syntax(text, "diff", word_wrap=False))


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective settings and the files they came from."""
    manager = ConfigManager()
    try:
        loaded = manager.load(include_env=not no_env, ensure_file=True)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    sources = [path for path in (manager.legacy_path, manager.config_path) if path.exists()]
    console.print(f"[dim]Sources: {', '.join(str(path) for path in sources)}[/dim]")
    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Store VALUE at the dotted KEY, e.g. ``scan.threads``, in config.yaml."""
    manager = ConfigManager()
    before = manager.read_text().splitlines()
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    _show_settings_diff(manager, before)
    console.print(f"[green]Updated {key}.[/green]")


@config.command("migrate")
def config_migrate() -> None:
    """Copy options from ~/.photobackuprc.yaml into config.yaml."""
    manager = ConfigManager()
    before = manager.read_text().splitlines()
    try:
        manager.migrate_legacy()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    _show_settings_diff(manager, before)
    console.print(
        f"[green]Migrated {manager.legacy_path} into {manager.config_path}; "
        "the option file can now be removed.[/green]"
    )


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
