"""Persistent ledger of compressed files and aggregate counters."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO, Any, Dict, Mapping, Optional

import portalocker
from pydantic import ValidationError

from .exceptions import LedgerCorruptError
from .models import LedgerCounters, LedgerDocument
from .utils import PathLike, atomic_write_bytes, file_sha256, normalize_path

logger = logging.getLogger(__name__)


class LedgerLock:
    """Exclusive advisory lock held around one read-merge-write cycle."""

    def __init__(self, ledger_path: Path) -> None:
        self.lock_path = ledger_path.with_name(ledger_path.name + ".lock")
        self.file: Optional[IO[str]] = None

    def __enter__(self) -> "LedgerLock":
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = self.lock_path.open("a+")
        try:
            portalocker.lock(self.file, portalocker.LockFlags.EXCLUSIVE)
        except BaseException:
            self.file.close()
            self.file = None
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        portalocker.unlock(self.file)
        self.file.close()
        self.file = None


class ContentLedger:
    """
    Maps absolute file paths to the hash of the content this tool last wrote
    (or settled on) for them, plus the running counters.

    The document is read fresh and merge-written for every update rather than
    held in memory for a whole run, so an interrupted run loses at most the
    update for the file being processed.
    """

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"ContentLedger(path={str(self.path)!r})"

    # --------------------------------------------------------------
    def _load(self) -> Optional[LedgerDocument]:
        if not self.path.exists():
            return None
        raw = self.path.read_bytes()
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LedgerCorruptError(self.path, f"invalid JSON ({exc})") from exc
        if not isinstance(payload, dict):
            raise LedgerCorruptError(self.path, "top level is not an object")
        try:
            return LedgerDocument.model_validate(payload)
        except ValidationError as exc:
            raise LedgerCorruptError(self.path, str(exc)) from exc

    def _save(self, doc: LedgerDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_bytes(self.path, doc.to_json().encode("utf-8"))

    def _load_or_init(self) -> LedgerDocument:
        doc = self._load()
        if doc is None:
            doc = LedgerDocument()
            self._save(doc)
            logger.debug("Created empty ledger at %s", self.path)
        return doc

    # --------------------------------------------------------------
    def read(self) -> LedgerDocument:
        """Load the ledger, creating and persisting an empty one if absent.

        Raises :class:`LedgerCorruptError` when the stored document cannot be
        parsed; the document is never replaced silently.
        """
        with LedgerLock(self.path):
            return self._load_or_init()

    def merge(
        self,
        new_entries: Mapping[str, str],
        new_counters: LedgerCounters,
    ) -> LedgerDocument:
        """Union ``new_entries`` into the stored entries and replace the counters.

        Entries for paths already present are overwritten; all other stored
        entries are kept. Counters are taken wholesale from ``new_counters``.
        """
        with LedgerLock(self.path):
            doc = self._load_or_init()
            data = dict(doc.data)
            data.update(new_entries)
            merged = LedgerDocument(data=data, count=new_counters)
            self._save(merged)
        logger.debug(
            "Merged %d entr%s into %s",
            len(new_entries),
            "y" if len(new_entries) == 1 else "ies",
            self.path,
        )
        return merged

    def counters(self) -> LedgerCounters:
        return self.read().count

    def entry_for(self, path: PathLike) -> Optional[str]:
        return self.read().data.get(normalize_path(path))

    def is_already_processed(self, path: PathLike) -> bool:
        """True iff ``path`` has an entry matching the hash of its current bytes.

        A file modified outside this tool no longer matches its entry and is
        therefore treated as unprocessed again.
        """
        stored = self.entry_for(path)
        if stored is None:
            return False
        return stored == file_sha256(path)

    def clear(self) -> bool:
        """Delete the ledger document. Returns ``False`` if there was none."""
        with LedgerLock(self.path):
            try:
                os.remove(self.path)
            except FileNotFoundError:
                return False
        logger.info("Removed ledger %s", self.path)
        return True

    def stats(self) -> Dict[str, Any]:
        doc = self.read()
        data = doc.count.as_dict()
        data["average"] = round(doc.count.average, 4)
        data["entries"] = len(doc.data)
        return data


__all__ = ["ContentLedger", "LedgerLock"]
