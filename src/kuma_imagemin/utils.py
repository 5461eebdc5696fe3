from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def calculate_sha256(data: bytes) -> str:
    """Calculates the SHA256 hash of a byte string."""
    return hashlib.sha256(data).hexdigest()


def file_sha256(path: PathLike) -> str:
    """Return the SHA256 hash of the bytes currently stored at ``path``."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(1 << 16), b""):
            h.update(block)
    return h.hexdigest()


def normalize_path(path: PathLike) -> str:
    """Absolute, resolved, forward-slash form used as the ledger key."""
    return Path(path).expanduser().resolve().as_posix()


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path`` so readers only ever see old or new content.

    The bytes go to a temporary file in the destination directory which is
    then moved over ``path`` with :func:`os.replace`.
    """
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if target.exists():
            # keep the permissions of the file being replaced
            os.chmod(tmp_name, target.stat().st_mode & 0o7777)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


__all__ = ["calculate_sha256", "file_sha256", "normalize_path", "atomic_write_bytes"]
