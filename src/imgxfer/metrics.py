from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable

from .model import TransferOutcome


@dataclass(slots=True)
class RunSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    total_duration_s: float = 0.0
    failures_by_kind: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[TransferOutcome]) -> "RunSummary":
        summary = cls()
        kinds: Counter[str] = Counter()
        for outcome in outcomes:
            summary.attempted += 1
            summary.total_duration_s += outcome.elapsed_s
            if outcome.ok:
                summary.succeeded += 1
            else:
                summary.failed += 1
                kinds[outcome.kind.value if outcome.kind else "unknown"] += 1
        summary.failures_by_kind = dict(sorted(kinds.items()))
        return summary

    @property
    def average_duration_s(self) -> float:
        # One sample per session executed, never per file scanned.
        if self.attempted == 0:
            return 0.0
        return self.total_duration_s / self.attempted

    def to_dict(self) -> dict:
        return {
            "tasks": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "total_seconds": round(self.total_duration_s, 6),
            "average_seconds": round(self.average_duration_s, 6),
            "failures_by_kind": dict(self.failures_by_kind),
        }
