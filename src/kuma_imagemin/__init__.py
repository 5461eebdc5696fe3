"""kuma-imagemin package with lazy loading of submodules."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "ContentLedger",
    "LedgerCounters",
    "LedgerDocument",
    "Reconciler",
    "Action",
    "FileResult",
    "RunSummary",
    "minify",
    "clear_origin",
    "reset_by_origin",
]

_lazy_map = {
    "ContentLedger": "kuma_imagemin.ledger",
    "LedgerCounters": "kuma_imagemin.models",
    "LedgerDocument": "kuma_imagemin.models",
    "Reconciler": "kuma_imagemin.engine",
    "Action": "kuma_imagemin.engine",
    "FileResult": "kuma_imagemin.engine",
    "RunSummary": "kuma_imagemin.engine",
    "minify": "kuma_imagemin.engine",
    "clear_origin": "kuma_imagemin.backup",
    "reset_by_origin": "kuma_imagemin.backup",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - simple passthrough
    if name in _lazy_map:
        module = importlib.import_module(_lazy_map[name])
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover - for completeness
    return sorted(list(globals().keys()) + list(_lazy_map.keys()))


__version__ = "0.1.0"
