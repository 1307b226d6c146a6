"""Typer CLI entrypoint for userlist_sync."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from userlist_sync.config import AppSettings, load_settings
from userlist_sync.errors import UserlistSyncError
from userlist_sync.logging_utils import configure_logging
from userlist_sync.pipeline import run_sync
from userlist_sync.publish import list_backups

EXIT_FAILURE = 1
EXIT_USAGE = 2

app = typer.Typer(
    add_completion=False,
    help="Keep PgBouncer's userlist.txt in sync with PostgreSQL role credentials.",
    no_args_is_help=True,
)


def _load_settings_or_exit(config_file: Path | None) -> AppSettings:
    try:
        return load_settings(config_file=config_file)
    except ValidationError as exc:
        typer.echo(f"error[config]: invalid settings: {exc}", err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides (secrets masked)."""

    settings = _load_settings_or_exit(config_file)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("sync")
def sync(
    connection: str | None = typer.Option(
        None,
        "--connection",
        help="Connection string to the PostgreSQL server holding the roles.",
    ),
    path: Path | None = typer.Option(
        None,
        "--path",
        help="Path to the userlist.txt file.",
        dir_okay=False,
    ),
    exclude: str | None = typer.Option(
        None,
        "--exclude",
        help="Comma-separated roles to exclude, directly or through group membership.",
    ),
    reload_trigger_file: Path | None = typer.Option(
        None,
        "--reload-trigger-file",
        help="Marker file whose presence means a reload is owed.",
        dir_okay=False,
    ),
    reload_command: str | None = typer.Option(
        None,
        "--reload-command",
        help="Shell command that reloads the pooler.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Fetch, render and compare without backing up, publishing or reloading.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Regenerate userlist.txt and reload the pooler when its content changed."""

    settings = _load_settings_or_exit(config_file)
    try:
        settings = settings.with_overrides(
            dsn=connection,
            userlist_path=path,
            exclude=exclude,
            reload_trigger_file=reload_trigger_file,
            reload_command=reload_command,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    logger = configure_logging(settings.paths.log_file, level=logging.DEBUG if verbose else logging.INFO)
    try:
        result = run_sync(settings, dry_run=dry_run, logger=logger)
    except UserlistSyncError as exc:
        logger.exception("sync.failed stage=%s", exc.stage)
        typer.echo(f"error[{exc.stage}]: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc

    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"outcome: {result.outcome}")
    typer.echo(f"changed: {str(result.changed).lower()}")
    typer.echo(f"credential_count: {result.credential_count}")
    typer.echo(f"fingerprint: {result.new_fingerprint}")
    typer.echo(f"live_path: {result.live_path}")
    typer.echo(f"backup_path: {result.backup_path if result.backup_path else 'none'}")
    typer.echo(f"backups_total: {len(list_backups(result.live_path))}")
    typer.echo(f"reload_invoked: {str(result.reload_invoked).lower()}")


def main() -> None:
    """Console-script entrypoint."""

    app()
