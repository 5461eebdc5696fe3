import logging
from pathlib import Path
from typing import Optional

import typer

from kuma_imagemin import __version__
from kuma_imagemin.config import Config
from kuma_imagemin.logging_utils import configure_logging, set_library_log_level

from .config_commands import config_app
from .ledger_commands import clear_log_command, count_command
from .min_commands import min_command
from .origin_commands import clear_origin_command, reset_by_origin_command

# --- Main Application ---
app = typer.Typer(
    help="kuma-imagemin: batch-compress PNG/JPEG images, skipping files that are already compressed."
)

app.add_typer(config_app, name="config")

app.command("min")(min_command)
app.command("clearOrigin")(clear_origin_command)
app.command("resetByOrigin")(reset_by_origin_command)
app.command("clearLog")(clear_log_command)
app.command("count")(count_command)


def version_callback(value: bool):
    if value:
        typer.echo(f"kuma-imagemin version: {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    ledger: Optional[Path] = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Path of the compression ledger document. Overrides env var and config.",
        show_default=False,
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Path to write debug logs. If not set, logs are not written to file.",
        resolve_path=True,
        show_default=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose (DEBUG level) logging.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "-v",
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the application version and exit.",
    ),
):
    """
    kuma-imagemin CLI main entry point.
    Resolves configuration, logging and the ledger location for subcommands.
    """
    if ctx.obj is None:
        ctx.obj = {}

    config = Config()
    if ledger is not None:
        config.update_from_cli("ledger_path", str(ledger))
    if verbose:
        config.update_from_cli("verbose", True)
    if log_file is not None:
        config.update_from_cli("log_file", str(log_file))

    resolved_verbose = config.get("verbose", False)
    level = logging.DEBUG if resolved_verbose else logging.INFO
    if config.get("log_file"):
        configure_logging(Path(config.get("log_file")).expanduser().resolve(), level)
        set_library_log_level(level)
    else:
        set_library_log_level(level, add_basic_handler=True)

    ctx.obj["config"] = config
    ctx.obj["verbose"] = resolved_verbose
    ctx.obj["ledger_path"] = config.ledger_path()
    logging.getLogger(__name__).debug("Using ledger %s", ctx.obj["ledger_path"])


if __name__ == "__main__":
    app()
