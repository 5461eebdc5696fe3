"""Per-file reconciliation: decide, for each candidate file, whether to
compress it, skip it, or record a failure, and apply the matching filesystem
and ledger updates.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .backup import backup_path_for, is_backup, iter_files
from .codecs import Codec, ImageKind, build_codecs, probe
from .ledger import ContentLedger
from .utils import PathLike, atomic_write_bytes, calculate_sha256, normalize_path

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 100


class Action(str, enum.Enum):
    COMPRESSED = "compressed"
    DECLINED = "declined"
    FAILED = "failed"
    SKIPPED_DONE = "already_compressed"
    SKIPPED_UNSUPPORTED = "unsupported"
    SKIPPED_BACKUP = "backup"


@dataclass
class FileResult:
    path: Path
    relative: str
    action: Action
    kind: Optional[ImageKind] = None
    before: Optional[int] = None
    after: Optional[int] = None
    ratio: Optional[float] = None

    @property
    def saved_percent(self) -> Optional[float]:
        if self.ratio is None:
            return None
        return round(100 - self.ratio * 100, 2)


@dataclass
class RunSummary:
    target: Path
    results: List[FileResult] = field(default_factory=list)

    @property
    def counts(self) -> Dict[Action, int]:
        return dict(Counter(r.action for r in self.results))

    def count(self, action: Action) -> int:
        return sum(1 for r in self.results if r.action is action)


class Reconciler:
    """Walks a target and brings each image file in line with the ledger.

    Files are processed strictly one after another; the ledger is
    merge-written after every file that reaches the codec, so an aborted run
    keeps the progress made on all earlier files.

    An ``OSError`` raised while handling a file is not caught here and aborts
    the run.
    """

    def __init__(
        self,
        ledger: ContentLedger,
        *,
        codecs: Optional[Dict[ImageKind, Codec]] = None,
        enumerate_files: Callable[[Path], Iterable[PathLike]] = iter_files,
        backup: bool = True,
        force: bool = False,
        quality: int = DEFAULT_QUALITY,
        on_result: Optional[Callable[[FileResult], None]] = None,
    ) -> None:
        if not 0 <= quality <= 100:
            raise ValueError(f"quality must be between 0 and 100, got {quality}")
        self.ledger = ledger
        self.codecs = codecs if codecs is not None else build_codecs()
        self.enumerate_files = enumerate_files
        self.backup = backup
        self.force = force
        self.quality = quality
        self.on_result = on_result

    # --------------------------------------------------------------
    def run(self, target: PathLike) -> RunSummary:
        root = Path(target).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"No such file or directory: '{root}'")
        summary = RunSummary(target=root)
        for candidate in self.enumerate_files(root):
            result = self.process_file(Path(candidate).resolve(), root)
            summary.results.append(result)
            if self.on_result is not None:
                self.on_result(result)
        logger.debug("Run over %s finished: %s", root, summary.counts)
        return summary

    def process_file(self, path: Path, root: Path) -> FileResult:
        relative = _relative_name(path, root)

        if is_backup(path):
            return FileResult(path=path, relative=relative, action=Action.SKIPPED_BACKUP)

        info = probe(path)
        codec = self.codecs.get(info.kind) if info is not None else None
        if codec is None:
            logger.debug("Skipping %s: not a supported image", relative)
            return FileResult(path=path, relative=relative, action=Action.SKIPPED_UNSUPPORTED)

        if not self.force and self.ledger.is_already_processed(path):
            logger.debug("Skipping %s: already compressed", relative)
            return FileResult(
                path=path, relative=relative, action=Action.SKIPPED_DONE, kind=info.kind
            )

        logger.debug("Compressing %s (%s, %dx%d)", relative, info.kind.value, info.width, info.height)
        original = path.read_bytes()
        encoded = codec(original, self.quality)
        counters = self.ledger.counters()
        key = normalize_path(path)

        if not encoded.succeeded:
            logger.warning("Encoder produced no output for %s", relative)
            self.ledger.merge({}, counters.record_failed())
            return FileResult(
                path=path,
                relative=relative,
                action=Action.FAILED,
                kind=info.kind,
                before=len(original),
            )

        ratio = encoded.ratio(len(original))
        if ratio >= 1:
            # settle on the original bytes so unchanged files are not retried
            self.ledger.merge({key: calculate_sha256(original)}, counters.record_declined())
            return FileResult(
                path=path,
                relative=relative,
                action=Action.DECLINED,
                kind=info.kind,
                before=len(original),
                after=len(encoded.data),
                ratio=ratio,
            )

        backup_path = backup_path_for(path)
        if backup_path.exists():
            backup_path.unlink()
        if self.backup:
            shutil.copy2(path, backup_path)
        atomic_write_bytes(path, encoded.data)
        self.ledger.merge(
            {key: calculate_sha256(encoded.data)},
            counters.record_compressed(len(original), len(encoded.data)),
        )
        logger.debug("Compressed %s: %d -> %d bytes", relative, len(original), len(encoded.data))
        return FileResult(
            path=path,
            relative=relative,
            action=Action.COMPRESSED,
            kind=info.kind,
            before=len(original),
            after=len(encoded.data),
            ratio=ratio,
        )


def _relative_name(path: Path, root: Path) -> str:
    # a single-file target has an empty relative path; show it absolute
    if root.is_dir():
        rel = os.path.relpath(path, root)
        if rel and rel != ".":
            return Path(rel).as_posix()
    return normalize_path(path)


def minify(
    target: PathLike,
    ledger: ContentLedger,
    *,
    backup: bool = True,
    force: bool = False,
    quality: int = DEFAULT_QUALITY,
    codecs: Optional[Dict[ImageKind, Codec]] = None,
    on_result: Optional[Callable[[FileResult], None]] = None,
) -> RunSummary:
    """Compress every supported image under ``target``."""
    reconciler = Reconciler(
        ledger,
        codecs=codecs,
        backup=backup,
        force=force,
        quality=quality,
        on_result=on_result,
    )
    return reconciler.run(target)


__all__ = ["Action", "FileResult", "RunSummary", "Reconciler", "minify", "DEFAULT_QUALITY"]
