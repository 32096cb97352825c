from __future__ import annotations

from datetime import date, datetime, time, timezone

# Timestamps are stored as naive UTC (SQLite keeps no offset).

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def utc_today() -> date:
    return utcnow().date()

def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)
