import logging
from pathlib import Path


def configure_logging(log_file: Path, level: int = logging.INFO) -> None:
    """Configure Python logging to write to ``log_file``."""
    if not log_file.parent.exists():
        log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(log_file))
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def set_library_log_level(level: int, add_basic_handler: bool = False) -> None:
    """Set the level of the ``kuma_imagemin`` logger hierarchy.

    With ``add_basic_handler`` a console handler is installed on the root
    logger when none is configured yet.
    """
    logging.getLogger("kuma_imagemin").setLevel(level)
    # Pillow logs every plugin import at DEBUG
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
    if add_basic_handler and not logging.getLogger().handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


__all__ = ["configure_logging", "set_library_log_level"]
