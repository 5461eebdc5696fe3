import json

import typer
from rich.console import Console
from rich.table import Table

from kuma_imagemin.exceptions import LedgerError
from kuma_imagemin.ledger import ContentLedger

_ROWS = [
    ("total", "Compressed files"),
    ("quit", "Declined (output not smaller)"),
    ("error", "Encoder failures"),
    ("preLen", "Bytes before"),
    ("nextLen", "Bytes after"),
    ("best", "Best saving (%)"),
    ("max", "Largest original (bytes)"),
    ("min", "Smallest original (bytes)"),
    ("average", "Average ratio"),
    ("entries", "Ledger entries"),
]


def clear_log_command(ctx: typer.Context) -> None:
    """Delete the compression ledger."""
    ledger = ContentLedger(ctx.obj["ledger_path"])
    try:
        existed = ledger.clear()
    except OSError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if existed:
        typer.echo(f"Cleared compression ledger {ledger.path}")
    else:
        typer.echo(f"No compression ledger at {ledger.path}")


def count_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output counters in JSON format."),
) -> None:
    """Show the aggregate compression counters."""
    ledger = ContentLedger(ctx.obj["ledger_path"])
    try:
        data = ledger.stats()
    except (LedgerError, OSError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(data))
        return

    table = Table(title="Compression counters")
    table.add_column("Counter", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta", justify="right")
    for key, label in _ROWS:
        value = data[key]
        if key == "best":
            value = f"{value:.2f}"
        elif key == "average":
            value = f"{value:.4f}"
        table.add_row(label, str(value))
    Console().print(table)
