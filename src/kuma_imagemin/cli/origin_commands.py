from pathlib import Path

import typer

from kuma_imagemin.backup import clear_origin, reset_by_origin


def clear_origin_command(
    path: Path = typer.Argument(
        ..., exists=True, resolve_path=True, help="File or directory to clean up."
    ),
) -> None:
    """Delete the original-file backups kept by 'min --backup'."""
    try:
        removed = clear_origin(path)
    except OSError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed {len(removed)} backup file(s).")


def reset_by_origin_command(
    path: Path = typer.Argument(
        ..., exists=True, resolve_path=True, help="File or directory to restore."
    ),
) -> None:
    """Overwrite compressed files with their backed-up originals."""
    try:
        restored = reset_by_origin(path)
    except OSError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    for original in restored:
        typer.echo(f"Restored {original}")
    typer.echo(f"Restored {len(restored)} file(s) from backups.")
