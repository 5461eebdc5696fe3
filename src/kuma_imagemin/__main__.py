try:  # optional pretty tracebacks
    from rich.traceback import install as install_rich_traceback

    install_rich_traceback()
except ImportError:  # pragma: no cover - rich may not be installed
    pass

from .cli import app


def main() -> None:
    """Entry point for ``python -m kuma_imagemin``."""
    app(prog_name="kuma-imagemin")


if __name__ == "__main__":
    main()
