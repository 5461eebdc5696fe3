from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LedgerCounters(BaseModel):
    """Aggregate totals kept alongside the ledger entries.

    ``preLen``/``nextLen``/``max``/``min``/``best`` only account for files
    that were actually rewritten with compressed bytes.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    total: int = 0
    quit: int = 0
    error: int = 0
    pre_len: int = Field(default=0, alias="preLen")
    next_len: int = Field(default=0, alias="nextLen")
    max: int = 0
    min: int = 0
    best: float = 0.0

    @field_validator("total", "quit", "error", "pre_len", "next_len", "max", "min")
    def _check_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("counters must be >= 0")
        return v

    # --------------------------------------------------------------
    def record_compressed(self, before: int, after: int) -> "LedgerCounters":
        """Return a copy updated for one file rewritten from ``before`` to ``after`` bytes."""
        ratio = after / before
        smallest = before if self.total == 0 else min(self.min, before)
        return self.model_copy(
            update={
                "total": self.total + 1,
                "pre_len": self.pre_len + before,
                "next_len": self.next_len + after,
                "max": max(self.max, before),
                "min": smallest,
                "best": max(self.best, round(100 - ratio * 100, 2)),
            }
        )

    def record_declined(self) -> "LedgerCounters":
        return self.model_copy(update={"quit": self.quit + 1})

    def record_failed(self) -> "LedgerCounters":
        return self.model_copy(update={"error": self.error + 1})

    @property
    def average(self) -> float:
        """Overall ``nextLen / preLen`` ratio, 0 when nothing was compressed."""
        if self.pre_len == 0:
            return 0.0
        return self.next_len / self.pre_len

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class LedgerDocument(BaseModel):
    """The persisted ledger: path -> content hash, plus counters."""

    model_config = ConfigDict(extra="forbid")

    data: Dict[str, str] = Field(default_factory=dict)
    count: LedgerCounters = Field(default_factory=LedgerCounters)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


__all__ = ["LedgerCounters", "LedgerDocument"]
