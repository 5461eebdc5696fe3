from pathlib import Path
from typing import Optional

import typer

from kuma_imagemin.codecs import build_codecs
from kuma_imagemin.config import Config
from kuma_imagemin.engine import Action, FileResult, Reconciler
from kuma_imagemin.exceptions import ConfigurationError, KumaImageminError
from kuma_imagemin.ledger import ContentLedger


def _report(result: FileResult) -> None:
    if result.action is Action.COMPRESSED:
        typer.echo(f"Compressing {result.relative}... saved {result.saved_percent:.2f}%")
    elif result.action is Action.DECLINED:
        typer.echo(f"Compressing {result.relative}... output not smaller, kept original")
    elif result.action is Action.SKIPPED_DONE:
        typer.echo(f"{result.relative}: already compressed")
    elif result.action is Action.FAILED:
        typer.secho(
            f"Compressing {result.relative}... encoder failed, will retry next run",
            fg=typer.colors.YELLOW,
        )


def min_command(
    ctx: typer.Context,
    path: Path = typer.Argument(
        ...,
        exists=True,
        resolve_path=True,
        help="File or directory to compress. Directories are processed recursively.",
    ),
    backup: Optional[bool] = typer.Option(
        None,
        "--backup/--no-backup",
        help="Keep a *.kuma_origin.* copy of each compressed original. [default: on]",
        show_default=False,
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Recompress files even if the ledger says they are already compressed.",
    ),
    quality: Optional[int] = typer.Option(
        None,
        "--quality",
        "-q",
        min=0,
        max=100,
        help="Compression quality, 0 lowest, 100 highest. [default: 100]",
        show_default=False,
    ),
) -> None:
    """Compress the PNG/JPEG images in a file or directory."""
    config: Config = ctx.obj["config"]
    try:
        if quality is None:
            quality = config.get("quality")
            if not 0 <= quality <= 100:
                _, source = config.get_with_source("quality")
                raise ConfigurationError(
                    f"quality must be between 0 and 100, got {quality} from {source}"
                )
        reconciler = Reconciler(
            ContentLedger(ctx.obj["ledger_path"]),
            codecs=build_codecs(pngquant=config.get("pngquant_path")),
            backup=config.get("backup") if backup is None else backup,
            force=force,
            quality=quality,
            on_result=_report,
        )
        reconciler.run(path)
    except (KumaImageminError, ValueError, OSError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
