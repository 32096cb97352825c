from __future__ import annotations

import csv
import json
from pathlib import Path

from subdetect.core.clock import utcnow
from subdetect.db.repo import Repo

def _iso(v):
    return v.isoformat() if v is not None else None

def build_subscriptions_payload(repo: Repo, user_id: str) -> dict:
    subs = []
    for s in repo.list_subscriptions(user_id):
        subs.append({
            "id": s.id,
            "merchant": s.merchant,
            "amount": s.amount,
            "currency": s.currency,
            "cadence": s.cadence,
            "cadence_days": s.cadence_days,
            "status": s.status,
            "confidence": s.confidence,
            "last_transaction_date": _iso(s.last_transaction_date),
            "next_payment_date": _iso(s.next_payment_date),
            "first_detected_at": _iso(s.first_detected_at),
            "last_seen_at": _iso(s.last_seen_at),
        })
    return {"user_id": user_id, "subscriptions": subs}

def export_subscriptions(repo: Repo, user_id: str, out_dir: Path, fmt: str = "csv") -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = utcnow().strftime("%Y%m%d_%H%M%S")
    data = build_subscriptions_payload(repo, user_id)

    if fmt.lower() == "json":
        path = out_dir / f"subdetect_{user_id}_{ts}.json"
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path

    path = out_dir / f"subdetect_{user_id}_{ts}.csv"
    fields = ["id", "merchant", "amount", "currency", "cadence", "cadence_days", "status",
              "confidence", "last_transaction_date", "next_payment_date", "first_detected_at", "last_seen_at"]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for s in data["subscriptions"]:
            w.writerow(s)
    return path
