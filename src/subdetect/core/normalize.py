from __future__ import annotations

import re

from subdetect.core.records import Txn

MULTISPACE = re.compile(r"\s+")
UNKNOWN_CURRENCY = "unknown"

def normalize_merchant(raw: str | None) -> str | None:
    if not raw:
        return None
    s = MULTISPACE.sub(" ", raw.lower()).strip()
    return s or None

def grouping_key(txn: Txn) -> str | None:
    merchant = normalize_merchant(txn.merchant)
    if merchant is None:
        return None
    return f"{merchant}::{txn.currency or UNKNOWN_CURRENCY}"

def group_transactions(txns: list[Txn]) -> dict[str, list[Txn]]:
    """Bucket transactions by grouping key, each bucket in date order.

    Transactions without a usable merchant label are dropped. The sort is
    stable, so same-day entries keep the order the source returned them in;
    the amount clusterer depends on this ordering.
    """
    groups: dict[str, list[Txn]] = {}
    for t in sorted(txns, key=lambda t: t.date):
        key = grouping_key(t)
        if key is None:
            continue
        groups.setdefault(key, []).append(t)
    return groups
