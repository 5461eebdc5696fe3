from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from kuma_imagemin.config import Config, DEFAULT_CONFIG, USER_CONFIG_PATH

config_app = typer.Typer(help="Manage kuma-imagemin configuration settings.")


@config_app.command(
    "set",
    help="Sets a configuration key in the user's global config file.\n\nUsage Examples:\n  kuma-imagemin config set quality 80\n  kuma-imagemin config set backup false",
)
def set_config_command(
    ctx: typer.Context,
    key: str = typer.Argument(
        ...,
        help=f"The configuration key to set. Valid keys: {', '.join(DEFAULT_CONFIG.keys())}.",
    ),
    value: str = typer.Argument(..., help="The new value for the configuration key."),
) -> None:
    config: Config = ctx.obj["config"]
    # Config.set reports invalid keys and values on stderr itself
    if not config.set(key, value):
        raise typer.Exit(code=1)
    typer.secho(
        f"Successfully set '{key}' to '{config.get(key)}' in the user global configuration: {USER_CONFIG_PATH}",
        fg=typer.colors.GREEN,
    )
    typer.echo(
        "Note: Environment variables or a local '.kumarc.yaml' may override this global setting."
    )


@config_app.command(
    "show",
    help="Displays current configuration values and their sources.\n\nUsage Examples:\n  kuma-imagemin config show\n  kuma-imagemin config show --key quality",
)
def show_config_command(
    ctx: typer.Context,
    key: Optional[str] = typer.Option(
        None,
        "--key",
        "-k",
        help=f"Specific configuration key to display. Valid keys: {', '.join(DEFAULT_CONFIG.keys())}.",
    ),
) -> None:
    config: Config = ctx.obj["config"]
    console = Console(width=200)
    table = Table(title="kuma-imagemin Configuration")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Effective Value", style="magenta", overflow="fold")
    table.add_column("Source", style="green", no_wrap=True, overflow="fold")

    if key:
        if key not in config.get_all_keys():
            typer.secho(f"Error: Configuration key '{key}' is not a recognized key.", fg=typer.colors.RED, err=True)
            typer.echo("Known configuration keys are:")
            for known_key in sorted(config.get_all_keys()):
                typer.echo(f"- {known_key}")
            raise typer.Exit(code=1)
        value, source_info = config.get_with_source(key)
        table.add_row(key, _display(value), source_info)
    else:
        for k_val, (value, source_info) in sorted(config.get_all_with_sources().items()):
            table.add_row(k_val, _display(value), source_info)

    ledger_source = "ledger_path" if config.get("ledger_path") else "workspace discovery"
    table.add_row("(resolved ledger)", str(ctx.obj["ledger_path"]), ledger_source)
    console.print(table)


def _display(value) -> str:
    if value == "":
        return "Not Set (uses default)"
    return str(value)
