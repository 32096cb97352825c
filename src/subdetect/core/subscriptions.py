from __future__ import annotations

from datetime import date, timedelta

from subdetect.core.cadence import CADENCE_WINDOWS
from subdetect.errors import SubdetectError

CADENCE_DAYS = {w.cadence: w.days for w in CADENCE_WINDOWS}

class SubscriptionNotFound(SubdetectError):
    pass

def compute_next_payment_date(last_date: date | None, cadence_days: int | None) -> date | None:
    if last_date is None or not cadence_days:
        return None
    return last_date + timedelta(days=int(cadence_days))

def create_manual_subscription(repo, user_id: str, fields: dict):
    """Store a user-entered subscription, deriving cadence_days and next_payment_date."""
    cadence_days = fields.get("cadence_days") or CADENCE_DAYS.get(fields.get("cadence", ""))
    if not cadence_days:
        raise ValueError("cadence_days is required")

    payload = dict(fields)
    payload["cadence_days"] = cadence_days
    payload["next_payment_date"] = fields.get("next_payment_date") or compute_next_payment_date(
        fields.get("last_transaction_date"), cadence_days
    )
    payload["status"] = fields.get("status") or "active"
    payload.setdefault("confidence", 1.0)
    return repo.create_subscription(user_id, payload)

def update_subscription(repo, user_id: str, sub_id: int, updates: dict):
    cadence_days = updates.get("cadence_days")
    if not cadence_days and updates.get("cadence"):
        cadence_days = CADENCE_DAYS.get(updates["cadence"])

    payload = dict(updates)
    if cadence_days:
        payload["cadence_days"] = cadence_days
    next_payment = updates.get("next_payment_date") or compute_next_payment_date(
        updates.get("last_transaction_date"), cadence_days
    )
    if next_payment:
        payload["next_payment_date"] = next_payment

    sub = repo.update_subscription(user_id, sub_id, payload)
    if sub is None:
        raise SubscriptionNotFound(f"Subscription {sub_id} not found")
    return sub

def delete_subscription(repo, user_id: str, sub_id: int) -> None:
    if not repo.delete_subscription(user_id, sub_id):
        raise SubscriptionNotFound(f"Subscription {sub_id} not found")
