from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Protocol

from subdetect.core.cadence import CadenceEstimate, estimate_cadence
from subdetect.core.clock import start_of_day, utc_today, utcnow
from subdetect.core.clustering import Cluster, cluster_by_amount
from subdetect.core.normalize import group_transactions
from subdetect.core.records import DetectionResult, Rejection, SubscriptionPayload, Txn
from subdetect.core.scoring import confidence as score_confidence
from subdetect.core.stats import mean, round2
from subdetect.core.subscriptions import compute_next_payment_date
from subdetect.errors import ClusterRejected

log = logging.getLogger(__name__)

DEFAULT_MIN_OCCURRENCES = 3
DEFAULT_CADENCE_DAYS = 30
DECAY_MULTIPLIER = 2
INACTIVE_MULTIPLIER = 3
DECAY_STEP = 0.1

class SubscriptionStore(Protocol):
    def find_subscription(self, user_id: str, merchant: str, amount: float, cadence: str) -> Optional[Any]: ...
    def upsert_subscription(self, payload: SubscriptionPayload) -> Any: ...
    def list_subscriptions(self, user_id: str) -> list[Any]: ...
    def update_subscription_fields(self, sub_id: int, *, confidence: float | None = None,
                                   status: str | None = None, expected_version: int | None = None) -> bool: ...

@dataclass
class DetectOptions:
    min_occurrences: int = DEFAULT_MIN_OCCURRENCES
    # fixed clock for decay and first_detected_at; defaults to UTC now
    today: date | None = None
    now: datetime | None = None

def build_payload(user_id: str, est: CadenceEstimate, now: datetime) -> SubscriptionPayload:
    ordered = est.ordered
    last = ordered[-1]
    return SubscriptionPayload(
        user_id=user_id,
        merchant=last.merchant,
        amount=round2(mean([abs(t.amount) for t in ordered])),
        currency=last.currency,
        cadence=est.cadence,
        cadence_days=est.cadence_days,
        last_transaction_date=last.date,
        next_payment_date=compute_next_payment_date(last.date, est.cadence_days),
        status="active",
        confidence=score_confidence(est.gaps, est.cadence_days, len(ordered)),
        first_detected_at=now,
        last_seen_at=start_of_day(last.date),
    )

def _rejection(key: str, cluster: Cluster, exc: ClusterRejected) -> Rejection:
    merchant = key.rpartition("::")[0]
    return Rejection(
        merchant=merchant,
        currency=cluster.members[-1].currency,
        representative_amount=cluster.representative_amount,
        member_count=len(cluster.members),
        reason=exc.reason,
    )

def decay_state(confidence: float, status: str | None, cadence_days: int | None,
                last_seen_at: datetime, today: date) -> tuple[float, str]:
    """Confidence and status after ageing a subscription to ``today``."""
    cadence_days = cadence_days or DEFAULT_CADENCE_DAYS
    days_since = (today - last_seen_at.date()).days
    decay_threshold = cadence_days * DECAY_MULTIPLIER
    inactive_threshold = cadence_days * INACTIVE_MULTIPLIER

    next_confidence = confidence
    next_status = status or "active"
    if days_since > decay_threshold:
        steps = (days_since - decay_threshold) // cadence_days + 1
        next_confidence = max(0.0, confidence - steps * DECAY_STEP)
    if days_since > inactive_threshold:
        next_status = "inactive"
    return next_confidence, next_status

def sweep_decay(store: SubscriptionStore, user_id: str, today: date, result: DetectionResult) -> None:
    for sub in store.list_subscriptions(user_id):
        if sub.last_seen_at is None:
            continue
        confidence, status = decay_state(sub.confidence or 0.0, sub.status, sub.cadence_days, sub.last_seen_at, today)
        if confidence == sub.confidence and status == sub.status:
            continue
        ok = store.update_subscription_fields(
            sub.id,
            confidence=confidence,
            status=status,
            expected_version=getattr(sub, "version", None),
        )
        if ok:
            result.decayed += 1
        else:
            result.decay_conflicts += 1
            log.warning("decay_conflict user=%s subscription_id=%s", user_id, sub.id)

def detect(store: SubscriptionStore, user_id: str, transactions: list[Txn],
           options: DetectOptions | None = None) -> DetectionResult:
    """Detect recurring charges in ``transactions`` and reconcile them with ``store``.

    Accepted clusters are upserted by natural key, then every stored
    subscription of the user is aged. Store failures propagate as
    ``DataAccessError``; writes already made stay in place.
    """
    opts = options or DetectOptions()
    today = opts.today or utc_today()
    now = opts.now or utcnow()
    result = DetectionResult()

    for key, group in group_transactions(transactions).items():
        for cluster in cluster_by_amount(group):
            try:
                est = estimate_cadence(cluster, opts.min_occurrences)
            except ClusterRejected as exc:
                result.rejected.append(_rejection(key, cluster, exc))
                log.debug("cluster_rejected reason=%s members=%s", exc.reason, len(cluster.members))
                continue

            payload = build_payload(user_id, est, now)
            existing = store.find_subscription(user_id, payload.merchant, payload.amount, payload.cadence)
            if existing is not None and existing.first_detected_at is not None:
                payload.first_detected_at = existing.first_detected_at

            result.candidates.append(payload)
            result.detected += 1
            store.upsert_subscription(payload)
            result.upserted += 1

    sweep_decay(store, user_id, today, result)
    log.info(
        "detect_done user=%s detected=%s upserted=%s rejected=%s decayed=%s conflicts=%s",
        user_id, result.detected, result.upserted, len(result.rejected), result.decayed, result.decay_conflicts,
    )
    return result
