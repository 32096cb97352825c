from __future__ import annotations

import hashlib
import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from subdetect.core.clock import start_of_day, utc_today
from subdetect.core.records import SubscriptionPayload, Txn
from subdetect.db.models import Notification, Subscription, Transaction
from subdetect.errors import DataAccessError

log = logging.getLogger(__name__)

NATURAL_KEY = ("user_id", "merchant", "amount", "cadence")

class Repo:
    """SQLite-backed transaction source and subscription store.

    Every SQLAlchemy failure is rolled back and re-raised as
    ``DataAccessError`` so the engine sees a single failure class.
    """

    def __init__(self, session: Session):
        self.s = session

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.s.rollback()
            log.error("db_error action=%s error=%s", action, type(e).__name__)
            raise DataAccessError(f"Failed to {action}") from e

    # transactions
    def _dedupe_hash(self, t: Txn) -> str:
        h = hashlib.sha256()
        h.update(t.date.isoformat().encode("utf-8"))
        h.update(f"|{t.amount:.2f}|{t.currency or ''}|{t.account_id or ''}|".encode("utf-8"))
        h.update((t.merchant or "").strip().upper().encode("utf-8")[:200])
        return h.hexdigest()

    def insert_transactions(self, user_id: str, rows: Iterable[Txn]) -> tuple[int, int]:
        inserted = 0
        skipped = 0
        with self._guard("insert transactions"):
            seen = set(self.s.execute(
                select(Transaction.hash_dedupe).where(Transaction.user_id == user_id)
            ).scalars())
            for t in rows:
                h = self._dedupe_hash(t)
                if h in seen:
                    skipped += 1
                    continue
                seen.add(h)
                self.s.add(Transaction(
                    user_id=user_id,
                    posted_at=t.date,
                    merchant=t.merchant,
                    amount=float(t.amount),
                    currency=t.currency,
                    account_id=t.account_id or "",
                    hash_dedupe=h,
                ))
                inserted += 1
            self.s.commit()
        log.info("import_complete user=%s inserted=%s skipped=%s", user_id, inserted, skipped)
        return inserted, skipped

    def fetch_transactions(self, user_id: str, lookback_days: int, today: date | None = None) -> list[Txn]:
        since = (today or utc_today()) - timedelta(days=lookback_days)
        with self._guard("fetch transactions for detection"):
            rows = self.s.execute(
                select(Transaction)
                .where(Transaction.user_id == user_id, Transaction.posted_at >= since)
                .order_by(Transaction.posted_at, Transaction.id)
            ).scalars().all()
        return [
            Txn(date=r.posted_at, merchant=r.merchant, amount=r.amount, currency=r.currency, account_id=r.account_id)
            for r in rows
        ]

    def list_user_ids(self) -> list[str]:
        with self._guard("list users"):
            return list(self.s.execute(
                select(Transaction.user_id).distinct().order_by(Transaction.user_id)
            ).scalars())

    # subscriptions
    def find_subscription(self, user_id: str, merchant: str, amount: float, cadence: str) -> Optional[Subscription]:
        with self._guard("fetch subscription"):
            return self.s.execute(select(Subscription).where(
                Subscription.user_id == user_id,
                Subscription.merchant == merchant,
                Subscription.amount == amount,
                Subscription.cadence == cadence,
            )).scalar_one_or_none()

    def upsert_subscription(self, payload: SubscriptionPayload) -> Subscription:
        values = payload.to_dict()
        stmt = sqlite_insert(Subscription).values(**values, version=1)
        changes = {k: stmt.excluded[k] for k in values if k not in NATURAL_KEY}
        changes["version"] = Subscription.version + 1
        stmt = stmt.on_conflict_do_update(index_elements=list(NATURAL_KEY), set_=changes)
        with self._guard("upsert subscription"):
            self.s.execute(stmt)
            self.s.commit()
        sub = self.find_subscription(payload.user_id, payload.merchant, payload.amount, payload.cadence)
        if sub is None:
            raise DataAccessError("Failed to upsert subscription")
        return sub

    def list_subscriptions(self, user_id: str) -> list[Subscription]:
        with self._guard("fetch subscriptions"):
            return list(self.s.execute(
                select(Subscription)
                .where(Subscription.user_id == user_id)
                .order_by(Subscription.next_payment_date, Subscription.id)
            ).scalars())

    def update_subscription_fields(
        self,
        sub_id: int,
        *,
        confidence: float | None = None,
        status: str | None = None,
        expected_version: int | None = None,
    ) -> bool:
        # False means the row was gone or written by someone else since it was read
        fields = {}
        if confidence is not None:
            fields["confidence"] = confidence
        if status is not None:
            fields["status"] = status
        if not fields:
            return True
        stmt = update(Subscription).where(Subscription.id == sub_id)
        if expected_version is not None:
            stmt = stmt.where(Subscription.version == expected_version)
        stmt = stmt.values(**fields, version=Subscription.version + 1).execution_options(synchronize_session=False)
        with self._guard("update subscription"):
            res = self.s.execute(stmt)
            self.s.commit()
        return (res.rowcount or 0) > 0

    def create_subscription(self, user_id: str, fields: dict) -> Subscription:
        sub = Subscription(user_id=user_id, version=1, **fields)
        with self._guard("create subscription"):
            self.s.add(sub)
            self.s.commit()
        return sub

    def get_subscription(self, user_id: str, sub_id: int) -> Optional[Subscription]:
        with self._guard("fetch subscription"):
            return self.s.execute(
                select(Subscription).where(Subscription.id == sub_id, Subscription.user_id == user_id)
            ).scalar_one_or_none()

    def update_subscription(self, user_id: str, sub_id: int, updates: dict) -> Optional[Subscription]:
        sub = self.get_subscription(user_id, sub_id)
        if sub is None:
            return None
        with self._guard("update subscription"):
            for k, v in updates.items():
                setattr(sub, k, v)
            sub.version = (sub.version or 0) + 1
            self.s.commit()
        return sub

    def delete_subscription(self, user_id: str, sub_id: int) -> bool:
        with self._guard("delete subscription"):
            n = self.s.execute(
                delete(Subscription).where(Subscription.id == sub_id, Subscription.user_id == user_id)
            ).rowcount or 0
            self.s.commit()
        return n > 0

    def list_upcoming_subscriptions(self, date_from: date, date_to: date, user_id: str | None = None) -> list[Subscription]:
        q = (
            select(Subscription)
            .where(
                Subscription.status == "active",
                Subscription.next_payment_date >= date_from,
                Subscription.next_payment_date <= date_to,
            )
            .order_by(Subscription.next_payment_date, Subscription.id)
        )
        if user_id is not None:
            q = q.where(Subscription.user_id == user_id)
        with self._guard("fetch upcoming subscriptions"):
            return list(self.s.execute(q).scalars())

    # notifications
    def has_notification(self, subscription_id: int, type_: str, day: date) -> bool:
        start = start_of_day(day)
        end = start + timedelta(days=1)
        with self._guard("check notifications"):
            row = self.s.execute(select(Notification.id).where(
                Notification.subscription_id == subscription_id,
                Notification.type == type_,
                Notification.scheduled_at >= start,
                Notification.scheduled_at < end,
            ).limit(1)).scalar_one_or_none()
        return row is not None

    def create_notification(self, user_id: str, subscription_id: int | None, type_: str,
                            content: str, scheduled_at: datetime, status: str = "pending") -> int:
        n = Notification(
            user_id=user_id,
            subscription_id=subscription_id,
            type=type_,
            content=content,
            status=status,
            scheduled_at=scheduled_at,
        )
        with self._guard("create notification"):
            self.s.add(n)
            self.s.commit()
        return n.id

    def list_notifications(self, user_id: str, limit: int = 200) -> list[Notification]:
        with self._guard("fetch notifications"):
            return list(self.s.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.scheduled_at.desc())
                .limit(limit)
            ).scalars())

    # purge
    def delete_all_rows(self) -> None:
        with self._guard("purge data"):
            for model in (Notification, Subscription, Transaction):
                self.s.execute(delete(model))
            self.s.commit()
