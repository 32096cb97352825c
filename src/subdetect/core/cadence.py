from __future__ import annotations

from dataclasses import dataclass

from subdetect.core.clustering import Cluster
from subdetect.core.records import Txn
from subdetect.core.stats import median
from subdetect.errors import InsufficientOccurrences, NoCadenceMatch

@dataclass(frozen=True)
class CadenceWindow:
    cadence: str
    min_days: int
    max_days: int
    days: int

    def contains(self, gap: float) -> bool:
        return self.min_days <= gap <= self.max_days

# Checked in order; the first window containing the median gap wins.
CADENCE_WINDOWS = (
    CadenceWindow("weekly", 5, 9, 7),
    CadenceWindow("biweekly", 12, 18, 14),
    CadenceWindow("monthly", 25, 35, 30),
    CadenceWindow("quarterly", 80, 100, 90),
    CadenceWindow("yearly", 330, 400, 365),
)

@dataclass
class CadenceEstimate:
    window: CadenceWindow
    gaps: list[int]
    gap_median: float
    ordered: list[Txn]

    @property
    def cadence(self) -> str:
        return self.window.cadence

    @property
    def cadence_days(self) -> int:
        return self.window.days

def match_window(gap: float) -> CadenceWindow | None:
    for w in CADENCE_WINDOWS:
        if w.contains(gap):
            return w
    return None

def positive_gaps(ordered: list[Txn]) -> list[int]:
    gaps = [(ordered[i].date - ordered[i - 1].date).days for i in range(1, len(ordered))]
    return [g for g in gaps if g > 0]

def estimate_cadence(cluster: Cluster, min_occurrences: int = 3) -> CadenceEstimate:
    if len(cluster.members) < min_occurrences:
        raise InsufficientOccurrences(
            f"{len(cluster.members)} occurrences, need {min_occurrences}"
        )

    ordered = sorted(cluster.members, key=lambda t: t.date)
    gaps = positive_gaps(ordered)
    if not gaps:
        raise NoCadenceMatch("all occurrences fall on the same day", reason="no_positive_gaps")

    gap_med = median(gaps)
    window = match_window(gap_med)
    if window is None:
        raise NoCadenceMatch(f"median gap {gap_med:g}d matches no cadence window")

    return CadenceEstimate(window=window, gaps=gaps, gap_median=gap_med, ordered=ordered)
