"""Naming and move/copy/delete rules for backups of original files."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterator, List

from .utils import PathLike

logger = logging.getLogger(__name__)

BACKUP_MARKER = "kuma_origin"
_BACKUP_RE = re.compile(r"^(?P<stem>.+)\." + re.escape(BACKUP_MARKER) + r"(?P<ext>\.[^.]*)?$")


def backup_path_for(path: PathLike) -> Path:
    """``photo.png`` -> ``photo.kuma_origin.png`` in the same directory."""
    p = Path(path)
    return p.with_name(f"{p.stem}.{BACKUP_MARKER}{p.suffix}")


def is_backup(path: PathLike) -> bool:
    return _BACKUP_RE.match(Path(path).name) is not None


def original_path_for(backup: PathLike) -> Path:
    """Strip the marker token from a backup file name."""
    p = Path(backup)
    match = _BACKUP_RE.match(p.name)
    if match is None:
        raise ValueError(f"'{p.name}' is not a backup file name")
    return p.with_name(match.group("stem") + (match.group("ext") or ""))


def iter_files(target: PathLike) -> Iterator[Path]:
    """Yield every regular file under ``target`` (or ``target`` itself) in a stable order."""
    root = Path(target)
    if root.is_file():
        yield root
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            candidate = Path(dirpath) / name
            if candidate.is_file():
                yield candidate


def iter_backups(target: PathLike) -> Iterator[Path]:
    for candidate in iter_files(target):
        if is_backup(candidate):
            yield candidate


def clear_origin(target: PathLike) -> List[Path]:
    """Delete every backup file under ``target``. Returns the removed paths."""
    removed = list(iter_backups(target))
    for backup in removed:
        backup.unlink()
        logger.info("Removed backup %s", backup)
    return removed


def reset_by_origin(target: PathLike) -> List[Path]:
    """Move every backup under ``target`` back over its original.

    The current (compressed) file is replaced and the backup is consumed.
    Returns the restored original paths.
    """
    restored: List[Path] = []
    for backup in list(iter_backups(target)):
        original = original_path_for(backup)
        os.replace(backup, original)
        logger.info("Restored %s from %s", original, backup.name)
        restored.append(original)
    return restored


__all__ = [
    "BACKUP_MARKER",
    "backup_path_for",
    "is_backup",
    "original_path_for",
    "iter_files",
    "iter_backups",
    "clear_origin",
    "reset_by_origin",
]
