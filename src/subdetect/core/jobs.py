from __future__ import annotations

import logging
from datetime import date, timedelta

from subdetect.app_config import AppConfig
from subdetect.core.clock import start_of_day, utc_today
from subdetect.core.engine import DetectOptions, detect
from subdetect.db.repo import Repo
from subdetect.errors import DataAccessError

log = logging.getLogger(__name__)

UPCOMING_TYPE = "subscription_upcoming"

def detect_for_user(repo: Repo, user_id: str, lookback_days: int, min_occurrences: int,
                    today: date | None = None):
    today = today or utc_today()
    window = repo.fetch_transactions(user_id, lookback_days, today=today)
    return detect(repo, user_id, window, DetectOptions(min_occurrences=min_occurrences, today=today))

def recompute_all(repo: Repo, cfg: AppConfig, today: date | None = None) -> int:
    """Run detection for every user with transactions; returns the number of failed users."""
    failed = 0
    users = repo.list_user_ids()
    for user_id in users:
        try:
            detect_for_user(repo, user_id, cfg.lookback_days, cfg.min_occurrences, today=today)
        except DataAccessError as e:
            failed += 1
            log.error("recompute_failed user=%s error=%s", user_id, e)
    log.info("recompute_all_done users=%s failed=%s", len(users), failed)
    return failed

def generate_upcoming_notifications(repo: Repo, window_days: int = 7, today: date | None = None,
                                    user_id: str | None = None) -> int:
    today = today or utc_today()
    created = 0
    upcoming = repo.list_upcoming_subscriptions(today, today + timedelta(days=window_days), user_id=user_id)
    for sub in upcoming:
        if sub.next_payment_date is None:
            continue
        if repo.has_notification(sub.id, UPCOMING_TYPE, sub.next_payment_date):
            continue
        repo.create_notification(
            user_id=sub.user_id,
            subscription_id=sub.id,
            type_=UPCOMING_TYPE,
            content=f"{sub.merchant} is due on {sub.next_payment_date.isoformat()}",
            scheduled_at=start_of_day(sub.next_payment_date),
        )
        created += 1
    log.info("upcoming_notifications created=%s candidates=%s", created, len(upcoming))
    return created
