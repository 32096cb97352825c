from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime

@dataclass
class Txn:
    date: date
    merchant: str | None
    amount: float
    currency: str | None
    account_id: str = ""

@dataclass
class SubscriptionPayload:
    user_id: str
    merchant: str
    amount: float
    currency: str | None
    cadence: str
    cadence_days: int
    last_transaction_date: date
    next_payment_date: date
    status: str
    confidence: float
    first_detected_at: datetime
    last_seen_at: datetime

    def to_dict(self) -> dict:
        return asdict(self)

@dataclass
class Rejection:
    merchant: str
    currency: str | None
    representative_amount: float
    member_count: int
    reason: str

@dataclass
class DetectionResult:
    detected: int = 0
    upserted: int = 0
    candidates: list[SubscriptionPayload] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)
    decayed: int = 0
    decay_conflicts: int = 0

    def to_dict(self) -> dict:
        return {
            "detected": self.detected,
            "upserted": self.upserted,
            "candidates": [c.to_dict() for c in self.candidates],
            "rejected": [asdict(r) for r in self.rejected],
            "decayed": self.decayed,
            "decay_conflicts": self.decay_conflicts,
        }
