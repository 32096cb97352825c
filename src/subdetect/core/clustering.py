from __future__ import annotations

from dataclasses import dataclass, field

from subdetect.core.records import Txn
from subdetect.core.stats import round2

ABS_TOLERANCE_CENTS = 100
REL_TOLERANCE_PERCENT = 2

def _cents(amount: float) -> int:
    return int(round(amount * 100))

@dataclass
class Cluster:
    representative_amount: float
    members: list[Txn] = field(default_factory=list)

    def accepts(self, amount: float) -> bool:
        # integer cents, scaled by 100 so the 2% limit stays exact
        rep = _cents(self.representative_amount)
        diff = abs(rep - _cents(amount))
        return diff * 100 <= max(ABS_TOLERANCE_CENTS * 100, rep * REL_TOLERANCE_PERCENT)

def cluster_by_amount(txns: list[Txn]) -> list[Cluster]:
    """Greedy first-match clustering on absolute amount.

    Input must already be in date order (see ``group_transactions``). The
    first member's rounded amount stays the representative for the life of
    the cluster, and a transaction joins the earliest-created cluster that
    accepts it.
    """
    clusters: list[Cluster] = []
    for t in txns:
        amt = round2(abs(t.amount))
        target = next((c for c in clusters if c.accepts(amt)), None)
        if target is None:
            target = Cluster(representative_amount=amt)
            clusters.append(target)
        target.members.append(t)
    return clusters
