"""Main CLI entry point for the transloadify command.

This module provides the Typer application. Template commands live under
the ``templates`` sub-command:

    transloadify templates create NAME FILE
    transloadify templates get ID...
    transloadify templates modify ID [--name NAME] [--file FILE]
    transloadify templates delete ID...
    transloadify templates list
    transloadify templates sync [--recursive] [--dry-run] PATH...
"""

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import typer

from transloadify import __version__
from transloadify.cli import commands
from transloadify.cli.errors import CommandFailedError
from transloadify.cli.models import ExitCode
from transloadify.cli.output import ConsoleOutput, OutputSink
from transloadify.template_client.api_wrapper import TransloaditClient
from transloadify.template_client.auth import Authenticator
from transloadify.template_client.errors import (
    InvalidCredentialsError,
    RemoteUnavailableError,
    SyncError,
)
from transloadify.template_files.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from transloadify.template_files.models import SyncConfig

app = typer.Typer(
    name="transloadify",
    help="Manage Transloadit templates as local JSON files.",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

templates_app = typer.Typer(
    help="Create, inspect, modify, delete and sync templates.",
    no_args_is_help=True,
)
app.add_typer(templates_app, name="templates")

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Options given before the sub-command."""
    verbosity: int = 0
    no_color: bool = False
    config_path: str = DEFAULT_CONFIG_PATH


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'transloadify' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("transloadify")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"transloadify_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _build_client() -> TransloaditClient:
    """Create the HTTP template client from environment credentials."""
    return TransloaditClient(Authenticator())


def _exit_code_for(error: Exception) -> ExitCode:
    """Map an exception to the process exit code."""
    if isinstance(error, InvalidCredentialsError):
        return ExitCode.AUTH_ERROR
    if isinstance(error, RemoteUnavailableError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, CommandFailedError):
        return ExitCode.PARTIAL_FAILURE
    return ExitCode.GENERAL_ERROR


def _run(
    ctx: typer.Context,
    action: Callable[[OutputSink, TransloaditClient, SyncConfig], Optional[ExitCode]],
) -> None:
    """Run one command with console output and exit-code mapping.

    Commands emit their own error entries before raising, so exceptions
    here only decide the exit code.
    """
    state: CLIState = ctx.obj or CLIState()
    output = ConsoleOutput(verbosity=state.verbosity, no_color=state.no_color)

    try:
        config = ConfigLoader.load_or_default(state.config_path)
    except SyncError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        exit_code = action(output, _build_client(), config) or ExitCode.SUCCESS
    except SyncError as e:
        logger.debug(f"Command failed: {e}")
        raise typer.Exit(_exit_code_for(e))
    except ValueError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(exit_code)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"transloadify version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    config_path: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to the sync options file",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Manage Transloadit templates as local JSON files.

    Credentials are read from TRANSLOADIT_KEY and TRANSLOADIT_SECRET
    (a .env file is honoured).
    """
    _configure_logging(verbosity, logdir)
    ctx.obj = CLIState(verbosity=verbosity, no_color=no_color, config_path=config_path)


@templates_app.command("create")
def create_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the new template"),
    file: str = typer.Argument(..., help="JSON file with the template content"),
) -> None:
    """Create a template from a JSON file and print its id."""
    def _create(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> None:
        commands.create(output, client, name, file, reserved_key=config.reserved_key)

    _run(ctx, _create)


@templates_app.command("get")
def get_command(
    ctx: typer.Context,
    templates: List[str] = typer.Argument(..., help="Template ids"),
) -> None:
    """Print templates as JSON, in the order given."""
    def _get(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> None:
        commands.get(output, client, templates, max_workers=config.max_workers)

    _run(ctx, _get)


@templates_app.command("modify")
def modify_command(
    ctx: typer.Context,
    template: str = typer.Argument(..., help="Template id"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New template name"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="JSON file with the new content"),
) -> None:
    """Rename a template and/or replace its content."""
    def _modify(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> None:
        commands.modify(
            output,
            client,
            template,
            name=name,
            file=file,
            reserved_key=config.reserved_key,
        )

    _run(ctx, _modify)


@templates_app.command("delete")
def delete_command(
    ctx: typer.Context,
    templates: List[str] = typer.Argument(..., help="Template ids"),
) -> None:
    """Delete templates."""
    def _delete(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> None:
        commands.delete(output, client, templates, max_workers=config.max_workers)

    _run(ctx, _delete)


@templates_app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List remote templates as '<id> <name>' lines."""
    def _list(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> None:
        commands.list_templates(output, client, page_size=config.page_size)

    _run(ctx, _list)


@templates_app.command("sync")
def sync_command(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Template files and directories"),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Descend into subdirectories",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would change without changing anything",
    ),
) -> None:
    """Create or update remote templates from local JSON files.

    Files without an id are created and get the new id written into them.
    Remote templates that have no local file are never deleted.
    """
    def _sync(output: OutputSink, client: TransloaditClient, config: SyncConfig) -> ExitCode:
        report = commands.sync(
            output,
            client,
            files,
            recursive=recursive,
            config=config,
            dry_run=dry_run,
        )
        return ExitCode.SUCCESS if report.ok else ExitCode.PARTIAL_FAILURE

    _run(ctx, _sync)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
