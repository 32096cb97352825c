from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

def _env_bool(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

def _env_int(name: str, default: int) -> int:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}") from None

@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    db_path: Path
    log_dir: Path
    export_dir: Path

    lookback_days: int
    min_occurrences: int
    upcoming_window_days: int

    log_redact: bool

def load_config() -> AppConfig:
    data_dir = Path(os.environ.get("SUBDETECT_DATA_DIR", "./data")).resolve()
    db_name = os.environ.get("SUBDETECT_DB_NAME", "subdetect.sqlite3")
    log_dir = Path(os.environ.get("SUBDETECT_LOG_DIR", "./logs")).resolve()
    export_dir = Path(os.environ.get("SUBDETECT_EXPORT_DIR", "./exports")).resolve()

    lookback_days = _env_int("SUBDETECT_LOOKBACK_DAYS", 365)
    min_occurrences = _env_int("SUBDETECT_MIN_OCCURRENCES", 3)
    upcoming_window_days = _env_int("SUBDETECT_UPCOMING_WINDOW_DAYS", 7)

    log_redact = _env_bool("SUBDETECT_LOG_REDACT", True)

    return AppConfig(
        data_dir=data_dir,
        db_path=(data_dir / db_name),
        log_dir=log_dir,
        export_dir=export_dir,
        lookback_days=lookback_days,
        min_occurrences=min_occurrences,
        upcoming_window_days=upcoming_window_days,
        log_redact=log_redact,
    )
