from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd
from dateutil import parser as dtparser

from subdetect.core.records import Txn

log = logging.getLogger(__name__)

def _guess_col(cols: list[str], candidates: list[str]) -> str | None:
    lc = {c.lower(): c for c in cols}
    for cand in candidates:
        for k, orig in lc.items():
            if cand in k:
                return orig
    return None

def detect_schema(df: pd.DataFrame) -> dict[str, str]:
    cols = [str(c) for c in df.columns]
    date_col = _guess_col(cols, ["date", "posted", "time"])
    merchant_col = _guess_col(cols, ["merchant", "description", "payee", "details", "narrative"])
    amount_col = _guess_col(cols, ["amount", "debit", "value"])
    currency_col = _guess_col(cols, ["currency", "curr"])
    account_col = _guess_col(cols, ["account"])
    if not (date_col and merchant_col and amount_col):
        raise ValueError(f"Could not auto-detect schema from columns: {cols}")
    return {
        "date": date_col,
        "merchant": merchant_col,
        "amount": amount_col,
        "currency": currency_col or "",
        "account": account_col or "",
    }

def parse_amount(val: Any) -> float:
    if val is None:
        return 0.0
    if isinstance(val, (int, float)):
        return float(val)
    s = str(val).strip().replace(",", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    return float(s)

def _text(val: Any) -> str | None:
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None

def read_csv(path: Path) -> pd.DataFrame:
    for enc in ("utf-8", "utf-8-sig", "cp1252"):
        try:
            return pd.read_csv(path, encoding=enc)
        except UnicodeDecodeError:
            continue
    return pd.read_csv(path, encoding="latin-1")

def ingest_csv(path: Path) -> list[Txn]:
    df = read_csv(path)
    mapping = detect_schema(df)
    rows: list[Txn] = []
    for _, r in df.iterrows():
        posted = dtparser.parse(str(r[mapping["date"]])).date()
        rows.append(Txn(
            date=posted,
            merchant=_text(r[mapping["merchant"]]),
            amount=parse_amount(r[mapping["amount"]]),
            currency=_text(r[mapping["currency"]]) if mapping["currency"] else None,
            account_id=(_text(r[mapping["account"]]) or "") if mapping["account"] else "",
        ))
    log.info("csv_ingested path=%s rows=%s", str(path), len(rows))
    return rows
